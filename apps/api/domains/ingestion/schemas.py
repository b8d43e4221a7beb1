"""Pydantic schemas for the ingestion domain."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class BankOut(BaseModel):
    id: str
    name: str
    supported_formats: list[str]


class BanksResponse(BaseModel):
    banks: list[BankOut]
    accepted_file_types: str


class DuplicateCheckOut(BaseModel):
    """One parsed row and how it compares with the account's history."""

    transaction: dict[str, Any]
    fingerprint: str
    confidence: str  # "exact", "medium" or "low"
    is_exact_duplicate: bool
    existing_transaction_id: Optional[str] = None


class PreviewResponse(BaseModel):
    transactions: list[DuplicateCheckOut]
    count: int
    exact_duplicates: int = 0
    possible_duplicates: int = 0


class ImportSummaryOut(BaseModel):
    import_id: str
    account_id: str
    bank_name: str
    total_rows: int = 0
    imported: int = 0
    duplicates: int = 0
    possible_duplicates: int = 0
    errors: int = 0
    skipped_rows: int = 0
    debit_count: int = 0
    credit_count: int = 0
    categorized: int = 0
    transfers_linked: int = 0
    status: str = "completed"


class ImportStats(BaseModel):
    total_imports: int
    total_transactions: int
    last_import_date: Optional[str] = None


class ImportsResponse(BaseModel):
    imports: list[dict[str, Any]] = Field(default_factory=list)
    stats: ImportStats


class DeleteImportResponse(BaseModel):
    import_id: str
    deleted_transactions: int
