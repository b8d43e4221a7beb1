"""Bank adapter registry.

Built once at start-up and passed to whatever needs adapter lookup.
Adapters are keyed by bank id and also resolvable by display name.
"""

from typing import Any, Dict, List, Optional

import structlog

from .adapters import BankFormatAdapter, HDFCStatementAdapter, SBIStatementAdapter
from .errors import FormatValidationError, UnsupportedBankError, UnsupportedFileTypeError
from .models import ParseResult, StatementFile, UnifiedTransaction
from .normalize import compact_description, fingerprint_from_parts
from .progress import ProgressCallback

logger = structlog.get_logger()


class ParserRegistry:
    """Ordered collection of bank adapters."""

    def __init__(self, adapters: Optional[List[BankFormatAdapter]] = None):
        self._adapters: Dict[str, BankFormatAdapter] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: BankFormatAdapter) -> None:
        if adapter.bank_id in self._adapters:
            logger.warning("adapter_replaced", bank=adapter.bank_id)
        self._adapters[adapter.bank_id] = adapter

    def adapters(self) -> List[BankFormatAdapter]:
        return list(self._adapters.values())

    def find(self, bank: Optional[str]) -> Optional[BankFormatAdapter]:
        """Adapter for a bank id or display name, case-insensitive."""
        if not bank:
            return None
        for adapter in self._adapters.values():
            if adapter.matches(bank):
                return adapter
        return None

    def get(self, bank: str) -> BankFormatAdapter:
        adapter = self.find(bank)
        if adapter is None:
            raise UnsupportedBankError(f"Unsupported bank: {bank}")
        return adapter

    def is_bank_supported(self, bank: str) -> bool:
        return self.find(bank) is not None

    def supported_banks(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": adapter.bank_id,
                "name": adapter.bank_name,
                "supported_formats": list(adapter.supported_formats),
            }
            for adapter in self._adapters.values()
        ]

    def bank_formats(self, bank: str) -> List[str]:
        adapter = self.find(bank)
        return list(adapter.supported_formats) if adapter else []

    def accepted_file_types(self, bank: Optional[str] = None) -> str:
        """Comma-separated extensions, for one bank or all of them."""
        if bank:
            adapter = self.find(bank)
            return ",".join(adapter.supported_formats) if adapter else "*"

        seen: List[str] = []
        for adapter in self._adapters.values():
            for ext in adapter.supported_formats:
                if ext not in seen:
                    seen.append(ext)
        return ",".join(seen)

    def detect_adapter(self, narration: str) -> Optional[BankFormatAdapter]:
        """First adapter, in registration order, that claims the narration."""
        for adapter in self._adapters.values():
            if adapter.can_handle(narration):
                return adapter
        return None

    def parse_with_bank(
        self,
        file: StatementFile,
        bank: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ParseResult:
        """Parse ``file`` with the adapter of an explicitly chosen bank.

        There is no auto-detection: the extension and header checks of the
        selected bank must pass before any row is read.
        """
        adapter = self.get(bank)

        if not adapter.accepts_extension(file):
            formats = ", ".join(adapter.supported_formats)
            raise UnsupportedFileTypeError(
                f"Invalid file format for {adapter.bank_name}. Expected: {formats}. "
                f"Please upload a valid {adapter.bank_name} statement."
            )

        if not adapter.can_parse_file(file):
            raise FormatValidationError(
                f"This file does not appear to be a valid {adapter.bank_name} bank statement. "
                f"Please ensure you are uploading a statement downloaded from {adapter.bank_name} "
                f"and that you have selected the correct account."
            )

        logger.info("parse_started", bank=adapter.bank_id, file=file.name, size=file.size)
        return adapter.parse(file, on_progress)

    def fingerprint(self, txn: UnifiedTransaction, account_id: str) -> str:
        """Fingerprint through the owning adapter, generic when the bank is unknown."""
        adapter = self.find(txn.bank_name)
        if adapter is not None:
            return adapter.generate_fingerprint(txn, account_id)
        return fingerprint_from_parts(
            [
                account_id,
                txn.bank_name,
                txn.date.isoformat(),
                compact_description(txn.description),
                txn.amount,
                txn.balance if txn.balance is not None else 0,
            ]
        )


def build_default_registry() -> ParserRegistry:
    return ParserRegistry([HDFCStatementAdapter(), SBIStatementAdapter()])
