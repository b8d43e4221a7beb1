"""Accounts router: account registry and per-account transactions."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from apps.api.core.errors import NotFoundError, ValidationError
from apps.api.deps import Services, get_services
from apps.api.domains.accounts.schemas import AccountCreate, AccountOut
from packages.storage.models import Account

router = APIRouter(prefix="/accounts", tags=["accounts"])

MAX_PAGE = 500


@router.post("", response_model=AccountOut, status_code=201)
async def create_account(request: AccountCreate, services: Services = Depends(get_services)):
    adapter = services.registry.find(request.bank_name)
    account = Account(
        name=request.name,
        bank_name=adapter.bank_name if adapter else request.bank_name,
        account_type=request.account_type,
        account_number=request.account_number,
    )
    return services.store.save_account(account).to_dict()


@router.get("", response_model=list[AccountOut])
async def list_accounts(services: Services = Depends(get_services)):
    return [account.to_dict() for account in services.store.list_accounts()]


@router.get("/{account_id}/transactions")
async def list_transactions(
    account_id: str,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    limit: int = Query(50, ge=1, le=MAX_PAGE),
    services: Services = Depends(get_services),
):
    """Newest transactions of an account, optionally within a date range."""
    if services.store.get_account(account_id) is None:
        raise NotFoundError(f"Account not found: {account_id}")

    if start or end:
        start = start or date.min
        end = end or date.max
        if start > end:
            raise ValidationError("start must not be after end")
        rows = services.store.transactions_in_range(account_id, start, end)
    else:
        rows = services.store.list_transactions(account_id)

    rows = list(reversed(rows))[:limit]
    return {"transactions": [t.to_dict() for t in rows], "count": len(rows)}
