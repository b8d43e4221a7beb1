"""Pydantic schemas for the categorization domain."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class DetectRequest(BaseModel):
    """A narration to categorize without storing a transaction."""

    description: str = Field(..., min_length=1, max_length=500)
    amount: float
    bank: Optional[str] = None
    account_id: Optional[str] = None


class DetectResponse(BaseModel):
    merchant_key: str
    category: Optional[str] = None


class CategorizeRequest(BaseModel):
    category: str
    save_rule: bool = True


class BulkCategorizeRequest(BaseModel):
    transaction_ids: list[str] = Field(..., min_length=1, max_length=500)
    category: str


class BulkCategorizeResponse(BaseModel):
    updated: int


class AutoCategorizeRequest(BaseModel):
    import_id: Optional[str] = None


class AutoCategorizeResponse(BaseModel):
    success: int
    failed: int


class RuleOut(BaseModel):
    id: str
    merchant_key: str
    root_category: str
    sub_category: Optional[str] = None
    confidence: float
    usage_count: int
    created_by: str
    last_used: str
    created_at: str


class RecurringMerchantOut(BaseModel):
    merchant_key: str
    frequency: str
    average_amount: float
    confidence: float
    transaction_count: int


class CategoryStatsOut(BaseModel):
    count: int
    amount: float
    percentage: float


class CategoriesResponse(BaseModel):
    categories: list[dict[str, Any]]


class MerchantCategorizeRequest(BaseModel):
    category: str
    import_id: Optional[str] = None
