# packages/storage/base.py
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional

from .models import Account, CategoryRule, ImportRecord, StoredTransaction


class TransactionStore(ABC):
    """
    Abstract base class for transaction storage backends.

    Lookups by account, import, merchant key, fingerprint and transfer
    group must be index backed: dedup and rule lookups run once per
    imported row.
    """

    # Transactions

    @abstractmethod
    def insert_transactions(self, transactions: List[StoredTransaction]) -> None:
        """Insert a batch atomically: either every row lands or none does."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[StoredTransaction]:
        pass

    @abstractmethod
    def update_transaction(
        self, transaction_id: str, changes: Dict[str, Any]
    ) -> Optional[StoredTransaction]:
        """Apply field changes, returning the updated row or None if missing."""
        pass

    @abstractmethod
    def delete_transactions(self, transaction_ids: List[str]) -> int:
        pass

    @abstractmethod
    def list_transactions(self, account_id: Optional[str] = None) -> List[StoredTransaction]:
        """All transactions, or one account's, ordered by date."""
        pass

    @abstractmethod
    def transactions_in_range(
        self, account_id: str, start: date, end: date
    ) -> List[StoredTransaction]:
        """Account transactions with ``start <= date <= end``, ordered by date."""
        pass

    @abstractmethod
    def transactions_for_import(self, import_id: str) -> List[StoredTransaction]:
        pass

    @abstractmethod
    def transactions_for_merchant(self, merchant_key: str) -> List[StoredTransaction]:
        pass

    @abstractmethod
    def find_by_fingerprint(
        self, account_id: str, fingerprint: str
    ) -> Optional[StoredTransaction]:
        pass

    @abstractmethod
    def transactions_in_group(self, group_id: str) -> List[StoredTransaction]:
        pass

    # Category rules

    @abstractmethod
    def rules_for_merchant(self, merchant_key: str) -> List[CategoryRule]:
        pass

    @abstractmethod
    def save_rule(self, rule: CategoryRule) -> CategoryRule:
        """Insert or replace by rule id."""
        pass

    @abstractmethod
    def delete_rule(self, rule_id: str) -> bool:
        pass

    @abstractmethod
    def list_rules(self) -> List[CategoryRule]:
        pass

    # Accounts

    @abstractmethod
    def save_account(self, account: Account) -> Account:
        pass

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        pass

    @abstractmethod
    def list_accounts(self) -> List[Account]:
        pass

    # Imports

    @abstractmethod
    def save_import(self, record: ImportRecord) -> ImportRecord:
        pass

    @abstractmethod
    def get_import(self, import_id: str) -> Optional[ImportRecord]:
        pass

    @abstractmethod
    def imports_for_account(self, account_id: str) -> List[ImportRecord]:
        """Newest first."""
        pass

    @abstractmethod
    def recent_imports(self, limit: int = 10) -> List[ImportRecord]:
        pass

    @abstractmethod
    def delete_import(self, import_id: str) -> int:
        """Delete the import record and its transactions, returning the row count removed."""
        pass

    def ping(self) -> bool:
        """Readiness probe. Backends with a remote connection override this."""
        return True
