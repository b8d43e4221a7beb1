"""Categorization router: detection, manual categorization, rules, recurrence."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from apps.api.deps import Services, get_services
from apps.api.domains.categorization import service
from apps.api.domains.categorization.schemas import (
    AutoCategorizeRequest,
    AutoCategorizeResponse,
    BulkCategorizeRequest,
    BulkCategorizeResponse,
    CategoriesResponse,
    CategorizeRequest,
    CategoryStatsOut,
    DetectRequest,
    DetectResponse,
    MerchantCategorizeRequest,
    RecurringMerchantOut,
    RuleOut,
)
from packages.categorization.constants import ROOT_CATEGORIES

router = APIRouter(prefix="/categorization", tags=["categorization"])
logger = structlog.get_logger()


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories():
    return {"categories": ROOT_CATEGORIES}


@router.post("/detect", response_model=DetectResponse)
async def detect_category(request: DetectRequest, services: Services = Depends(get_services)):
    """Categorize a narration. Learned rules are updated as a side effect."""
    return service.detect(services, request)


@router.post("/transactions/{transaction_id}")
async def categorize_transaction(
    transaction_id: str,
    request: CategorizeRequest,
    services: Services = Depends(get_services),
):
    """Set a transaction's category by hand and, by default, remember it as a user rule."""
    return service.categorize_transaction(services, transaction_id, request.category, request.save_rule)


@router.post("/bulk", response_model=BulkCategorizeResponse)
async def bulk_categorize(request: BulkCategorizeRequest, services: Services = Depends(get_services)):
    return service.bulk_categorize(services, request.transaction_ids, request.category)


@router.post("/merchants/{merchant_key}", response_model=BulkCategorizeResponse)
async def categorize_merchant(
    merchant_key: str,
    request: MerchantCategorizeRequest,
    services: Services = Depends(get_services),
):
    """Categorize the uncategorized transactions of a merchant and learn a user rule."""
    return service.categorize_merchant(services, merchant_key, request.category, request.import_id)


@router.post("/auto", response_model=AutoCategorizeResponse)
async def auto_categorize(request: AutoCategorizeRequest, services: Services = Depends(get_services)):
    """Categorize every uncategorized transaction, optionally of one import."""
    result = await run_in_threadpool(services.categorizer.auto_categorize, request.import_id)
    logger.info("auto_categorize_requested", import_id=request.import_id, **result)
    return result


@router.get("/rules", response_model=list[RuleOut])
async def list_rules(
    merchant_key: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    return service.list_rules(services, merchant_key)


@router.delete("/rules/{rule_id}", status_code=204)
async def delete_rule(rule_id: str, services: Services = Depends(get_services)):
    service.delete_rule(services, rule_id)


@router.get("/recurring", response_model=list[RecurringMerchantOut])
async def recurring_merchants(
    account_id: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    """Merchants whose history looks recurring, most confident first."""
    return await run_in_threadpool(services.categorizer.detect_all_recurring_merchants, account_id)


@router.get("/stats", response_model=dict[str, CategoryStatsOut])
async def category_stats(
    account_id: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    return services.categorizer.category_stats(account_id)
