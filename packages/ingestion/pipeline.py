"""Statement import pipeline.

parse -> duplicate check -> persist in batches -> categorize -> link
transfers, with an ImportRecord tracking the outcome. Imports into the
same account are serialized so the duplicate check never works from a
stale snapshot.
"""

import threading
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog

from packages.storage.models import ImportRecord, StoredTransaction

from .dedup import DeduplicationEngine
from .merchant_keys import MerchantKeyExtractor
from .models import DuplicateCheckResult, ParseProgress, StatementFile
from .progress import ProgressCallback
from .registry import ParserRegistry

if TYPE_CHECKING:
    from packages.categorization.engine import CategorizationEngine
    from packages.categorization.transfers import TransferMatchingEngine
    from packages.storage.base import TransactionStore

logger = structlog.get_logger()

DEFAULT_BATCH_SIZE = 100

FILE_FORMATS = {".csv": "csv", ".txt": "txt", ".xls": "excel", ".xlsx": "excel"}


@dataclass
class ImportSummary:
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

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ImportPipeline:
    def __init__(
        self,
        store: "TransactionStore",
        registry: ParserRegistry,
        categorizer: Optional["CategorizationEngine"] = None,
        transfer_engine: Optional["TransferMatchingEngine"] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = store
        self.registry = registry
        self.categorizer = categorizer
        self.transfer_engine = transfer_engine
        self.batch_size = batch_size
        self.dedup = DeduplicationEngine(store, registry)
        self.merchant_keys = MerchantKeyExtractor(registry)
        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _account_lock(self, account_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[account_id]

    def preview(self, file: StatementFile, account_id: str, bank: str) -> List[DuplicateCheckResult]:
        """Parse and classify duplicates without writing anything."""
        result = self.registry.parse_with_bank(file, bank)
        return self.dedup.check_for_duplicates(result.transactions, account_id)

    def run(
        self,
        file: StatementFile,
        account_id: str,
        bank: str,
        on_progress: Optional[ProgressCallback] = None,
        skip_duplicates: bool = True,
        display_name: Optional[str] = None,
    ) -> ImportSummary:
        adapter = self.registry.get(bank)
        record = ImportRecord(
            account_id=account_id,
            file_name=file.name,
            file_size=file.size,
            file_format=FILE_FORMATS.get(file.extension, file.extension.lstrip(".")),
            bank_name=adapter.bank_name,
            display_name=display_name or file.name,
            status="processing",
        )
        self.store.save_import(record)

        with self._account_lock(account_id):
            structlog.contextvars.bind_contextvars(import_id=record.id, account_id=account_id)
            try:
                summary = self._run_locked(file, record, bank, on_progress, skip_duplicates)
            except Exception as e:
                record.status = "failed"
                record.error_message = str(e)
                self.store.save_import(record)
                logger.error("import_failed", error=str(e), error_type=type(e).__name__)
                raise
            finally:
                structlog.contextvars.unbind_contextvars("import_id", "account_id")
        return summary

    def _run_locked(
        self,
        file: StatementFile,
        record: ImportRecord,
        bank: str,
        on_progress: Optional[ProgressCallback],
        skip_duplicates: bool,
    ) -> ImportSummary:
        logger.info("import_started", file=file.name, bank=bank, skip_duplicates=skip_duplicates)
        result = self.registry.parse_with_bank(file, bank, on_progress)
        checks = self.dedup.check_for_duplicates(result.transactions, record.account_id)

        summary = ImportSummary(
            import_id=record.id,
            account_id=record.account_id,
            bank_name=record.bank_name,
            total_rows=len(result.transactions) + result.error_count,
            errors=result.error_count,
            skipped_rows=result.skipped_rows,
        )

        to_store: List[StoredTransaction] = []
        for check in checks:
            if check.is_exact_duplicate and skip_duplicates:
                summary.duplicates += 1
                continue
            if check.is_possible_duplicate:
                summary.possible_duplicates += 1

            txn = check.transaction
            to_store.append(
                StoredTransaction.from_unified(
                    txn,
                    account_id=record.account_id,
                    import_id=record.id,
                    fingerprint=check.fingerprint,
                    merchant_key=self.merchant_keys.extract(txn.description, txn.bank_name),
                    is_duplicate=check.is_exact_duplicate,
                    original_transaction_id=(
                        check.existing_transaction.id if check.is_exact_duplicate else None
                    ),
                )
            )

        self._persist(to_store, on_progress)

        summary.imported = len(to_store)
        summary.debit_count = sum(1 for t in to_store if t.amount < 0)
        summary.credit_count = sum(1 for t in to_store if t.amount > 0)

        if self.categorizer is not None and to_store:
            outcome = self.categorizer.auto_categorize(import_id=record.id)
            summary.categorized = outcome["success"]
        if self.transfer_engine is not None and to_store:
            linked = self.transfer_engine.auto_link_transfers(record.id)
            summary.transfers_linked = linked["linked"]

        record.total_rows = summary.total_rows
        record.success_count = summary.imported
        record.error_count = summary.errors
        record.debit_count = summary.debit_count
        record.credit_count = summary.credit_count
        record.duplicate_count = summary.duplicates
        record.status = "completed"
        self.store.save_import(record)

        logger.info(
            "import_completed",
            imported=summary.imported,
            duplicates=summary.duplicates,
            possible_duplicates=summary.possible_duplicates,
            categorized=summary.categorized,
            transfers_linked=summary.transfers_linked,
        )
        return summary

    def _persist(
        self, transactions: List[StoredTransaction], on_progress: Optional[ProgressCallback]
    ) -> None:
        total = len(transactions)
        for start in range(0, total, self.batch_size):
            batch = transactions[start : start + self.batch_size]
            self.store.insert_transactions(batch)
            saved = start + len(batch)
            logger.debug("batch_persisted", size=len(batch), saved=saved, total=total)
            if on_progress:
                on_progress(
                    ParseProgress(
                        stage="saving",
                        rows_processed=saved,
                        transactions_found=total,
                        message=f"Saved {saved} of {total} transactions",
                    )
                )

    def delete_import(self, import_id: str) -> int:
        return self.store.delete_import(import_id)

    def import_stats(self, account_id: Optional[str] = None) -> Dict[str, Any]:
        if account_id is not None:
            imports = self.store.imports_for_account(account_id)
        else:
            imports = self.store.recent_imports(limit=1_000_000)
        last = max((r.imported_at for r in imports), default=None)
        return {
            "total_imports": len(imports),
            "total_transactions": sum(r.success_count for r in imports),
            "last_import_date": last.isoformat() if last else None,
        }

    def update_transactions_account(self, import_id: str, account_id: str) -> int:
        """Move an import's transactions to another account, re-fingerprinting each."""
        moved = 0
        for txn in self.store.transactions_for_import(import_id):
            self.store.update_transaction(
                txn.id,
                {"account_id": account_id, "fingerprint": self.registry.fingerprint(txn, account_id)},
            )
            moved += 1

        record = self.store.get_import(import_id)
        if record is not None:
            record.account_id = account_id
            self.store.save_import(record)
        logger.info("import_moved", import_id=import_id, account_id=account_id, transactions=moved)
        return moved
