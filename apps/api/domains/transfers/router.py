"""Transfers router: candidate matches, linking and transfer groups."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from apps.api.core.errors import NotFoundError
from apps.api.deps import Services, get_services
from apps.api.domains.transfers.schemas import (
    LinkRequest,
    LinkResponse,
    TransferMatchOut,
    UnlinkResponse,
)

router = APIRouter(prefix="/transfers", tags=["transfers"])


def _transaction_or_404(services: Services, transaction_id: str):
    transaction = services.store.get_transaction(transaction_id)
    if transaction is None:
        raise NotFoundError(f"Transaction not found: {transaction_id}")
    return transaction


@router.get("/groups/{group_id}")
async def transfer_group(group_id: str, services: Services = Depends(get_services)):
    rows = services.transfers.get_transfer_group(group_id)
    if not rows:
        raise NotFoundError(f"Transfer group not found: {group_id}")
    return {"transfer_group_id": group_id, "transactions": [t.to_dict() for t in rows]}


@router.get("/{transaction_id}/matches", response_model=list[TransferMatchOut])
async def potential_matches(
    transaction_id: str,
    target_account_id: str = Query(...),
    date_window_days: Optional[int] = Query(None, ge=0, le=31),
    services: Services = Depends(get_services),
):
    """Opposite-signed, equal-amount transactions in the target account, best first."""
    transaction = _transaction_or_404(services, transaction_id)
    matches = services.transfers.find_potential_matches(
        transaction, target_account_id, date_window_days
    )
    return [m.to_dict() for m in matches]


@router.post("/link", response_model=LinkResponse)
async def link_transfer(request: LinkRequest, services: Services = Depends(get_services)):
    if services.store.get_account(request.linked_account_id) is None:
        raise NotFoundError(f"Account not found: {request.linked_account_id}")
    group_id = services.transfers.link_transfer(
        request.source_transaction_id,
        request.linked_account_id,
        request.linked_transaction_id,
    )
    return {"transfer_group_id": group_id}


@router.post("/{transaction_id}/unlink", response_model=UnlinkResponse)
async def unlink_transfer(transaction_id: str, services: Services = Depends(get_services)):
    _transaction_or_404(services, transaction_id)
    return {"transaction_id": transaction_id, "unlinked": services.transfers.unlink_transfer(transaction_id)}
