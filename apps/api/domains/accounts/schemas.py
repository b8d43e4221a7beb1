"""Pydantic schemas for the accounts domain."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    bank_name: str = Field(..., min_length=1)
    account_type: Literal["savings", "current", "credit"] = "savings"
    account_number: Optional[str] = Field(
        None, description="Full or partial number; only the last four digits are stored"
    )


class AccountOut(BaseModel):
    id: str
    name: str
    bank_name: str
    account_type: str
    account_number: Optional[str] = None
    is_active: bool
    created_at: str
    updated_at: str
