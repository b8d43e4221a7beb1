"""Pydantic schemas for the transfers domain."""

from typing import Any, Optional

from pydantic import BaseModel


class TransferMatchOut(BaseModel):
    transaction: dict[str, Any]
    confidence: str  # "exact", "high" or "medium"
    match_reason: str
    days_apart: int


class LinkRequest(BaseModel):
    source_transaction_id: str
    linked_account_id: str
    linked_transaction_id: Optional[str] = None


class LinkResponse(BaseModel):
    transfer_group_id: str


class UnlinkResponse(BaseModel):
    transaction_id: str
    unlinked: bool
