"""Ingestion service: upload handling between the router and the pipeline."""

from typing import List, Optional

import structlog
from fastapi import UploadFile

from apps.api.core.errors import NotFoundError, PayloadTooLargeError
from apps.api.deps import Services
from packages.ingestion.models import DuplicateCheckResult, StatementFile

logger = structlog.get_logger()


async def read_statement(upload: UploadFile, password: Optional[str], max_bytes: int) -> StatementFile:
    """Read an upload into a StatementFile, enforcing the size limit."""
    contents = await upload.read()
    if len(contents) > max_bytes:
        raise PayloadTooLargeError(f"File too large (max {max_bytes // (1024 * 1024)}MB)")
    return StatementFile(name=upload.filename or "", content=contents, password=password or None)


def require_account(services: Services, account_id: str) -> None:
    if services.store.get_account(account_id) is None:
        raise NotFoundError(f"Account not found: {account_id}")


def serialize_checks(checks: List[DuplicateCheckResult]) -> dict:
    rows = [
        {
            "transaction": check.transaction.to_dict(),
            "fingerprint": check.fingerprint,
            "confidence": check.confidence,
            "is_exact_duplicate": check.is_exact_duplicate,
            "existing_transaction_id": (
                check.existing_transaction.id if check.existing_transaction is not None else None
            ),
        }
        for check in checks
    ]
    return {
        "transactions": rows,
        "count": len(rows),
        "exact_duplicates": sum(1 for c in checks if c.is_exact_duplicate),
        "possible_duplicates": sum(1 for c in checks if c.is_possible_duplicate),
    }


def list_imports(services: Services, account_id: Optional[str]) -> dict:
    if account_id:
        records = services.store.imports_for_account(account_id)
    else:
        records = services.store.recent_imports()
    return {
        "imports": [r.to_dict() for r in records],
        "stats": services.pipeline.import_stats(account_id),
    }


def delete_import(services: Services, import_id: str) -> dict:
    if services.store.get_import(import_id) is None:
        raise NotFoundError(f"Import not found: {import_id}")
    removed = services.pipeline.delete_import(import_id)
    return {"import_id": import_id, "deleted_transactions": removed}
