# packages/ingestion/adapters/base.py
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from ..merchant_keys import generic_merchant_key
from ..models import ParseResult, StatementFile, TransactionHints, UnifiedTransaction
from ..progress import ProgressCallback


class BankFormatAdapter(ABC):
    """
    Abstract base class for bank statement adapters.

    One implementation per bank export format. An adapter validates that a
    file is its bank's export, parses rows into ``UnifiedTransaction``
    records, and owns the bank-specific merchant key and fingerprint rules.
    """

    bank_id: str = ""
    bank_name: str = ""
    supported_formats: Tuple[str, ...] = ()
    source: str = ""

    def accepts_extension(self, file: StatementFile) -> bool:
        return file.extension in self.supported_formats

    def matches(self, bank: str) -> bool:
        """True when ``bank`` names this adapter by id or display name."""
        wanted = (bank or "").strip().lower()
        return wanted in (self.bank_id.lower(), self.bank_name.lower())

    @abstractmethod
    def can_handle(self, narration: str) -> bool:
        """Return True if the narration looks like this bank's format."""
        pass

    @abstractmethod
    def can_parse_file(self, file: StatementFile) -> bool:
        """
        Inspect headers/structure of the file.

        Must not raise for foreign or corrupt files; returns False instead.
        """
        pass

    @abstractmethod
    def parse(
        self, file: StatementFile, on_progress: Optional[ProgressCallback] = None
    ) -> ParseResult:
        """
        Parse the whole statement.

        Raises:
            FormatValidationError: the header check failed.
            NoTransactionsError: no usable transaction rows were found.
        """
        pass

    @abstractmethod
    def generate_fingerprint(self, txn: UnifiedTransaction, account_id: str) -> str:
        """Deterministic fingerprint from the account and raw source fields."""
        pass

    def extract_merchant_key(self, narration: str) -> str:
        return generic_merchant_key(narration)

    def extract_hints(self, narration: str) -> TransactionHints:
        return TransactionHints()
