"""Supabase (PostgREST) backed store.

Tables: ``transactions``, ``accounts``, ``imports`` and ``category_rules``,
one column per dataclass field. The indexes the pipeline relies on
(account_id, import_id, merchant_key, transfer_group_id,
``(account_id, fingerprint)`` and ``(account_id, date)``) live in the
database schema.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from supabase import Client, create_client

from .base import TransactionStore
from .models import Account, CategoryRule, ImportRecord, StoredTransaction, iso_value

logger = structlog.get_logger()

TRANSACTIONS = "transactions"
ACCOUNTS = "accounts"
IMPORTS = "imports"
RULES = "category_rules"

# PostgREST caps a select at 1000 rows unless the request asks for a range
PAGE_SIZE = 1000


def create_supabase_store(url: str, key: str) -> "SupabaseStore":
    """Service-role client factory."""
    if not url or not key:
        raise RuntimeError("Supabase environment variables are not configured")
    return SupabaseStore(create_client(url, key))


class SupabaseStore(TransactionStore):
    def __init__(self, client: Client, page_size: int = PAGE_SIZE):
        self.client = client
        self.page_size = page_size

    def _select(self, table: str):
        return self.client.table(table).select("*")

    def _paged(self, build_query) -> List[Dict[str, Any]]:
        """Every row of a select, fetched one range at a time.

        ``build_query`` returns a fresh, ordered query for each page.
        """
        rows: List[Dict[str, Any]] = []
        start = 0
        while True:
            page = build_query().range(start, start + self.page_size - 1).execute().data or []
            rows.extend(page)
            if len(page) < self.page_size:
                return rows
            start += self.page_size

    def _paged_transactions(self, build_query) -> List[StoredTransaction]:
        return [StoredTransaction.from_dict(row) for row in self._paged(build_query)]

    @staticmethod
    def _transactions(response) -> List[StoredTransaction]:
        return [StoredTransaction.from_dict(row) for row in response.data or []]

    # Transactions

    def insert_transactions(self, transactions: List[StoredTransaction]) -> None:
        if not transactions:
            return
        # A single request per batch; PostgREST runs it in one statement
        self.client.table(TRANSACTIONS).insert([t.to_dict() for t in transactions]).execute()
        logger.debug("transactions_inserted", count=len(transactions))

    def get_transaction(self, transaction_id: str) -> Optional[StoredTransaction]:
        response = self._select(TRANSACTIONS).eq("id", transaction_id).limit(1).execute()
        rows = self._transactions(response)
        return rows[0] if rows else None

    def update_transaction(
        self, transaction_id: str, changes: Dict[str, Any]
    ) -> Optional[StoredTransaction]:
        payload = {k: iso_value(v) for k, v in changes.items()}
        response = self.client.table(TRANSACTIONS).update(payload).eq("id", transaction_id).execute()
        rows = self._transactions(response)
        return rows[0] if rows else None

    def delete_transactions(self, transaction_ids: List[str]) -> int:
        if not transaction_ids:
            return 0
        response = self.client.table(TRANSACTIONS).delete().in_("id", transaction_ids).execute()
        return len(response.data or [])

    def list_transactions(self, account_id: Optional[str] = None) -> List[StoredTransaction]:
        def build():
            query = self._select(TRANSACTIONS)
            if account_id is not None:
                query = query.eq("account_id", account_id)
            return query.order("date", desc=False).order("id")

        return self._paged_transactions(build)

    def transactions_in_range(
        self, account_id: str, start: date, end: date
    ) -> List[StoredTransaction]:
        return self._paged_transactions(
            lambda: self._select(TRANSACTIONS)
            .eq("account_id", account_id)
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("date", desc=False)
            .order("id")
        )

    def transactions_for_import(self, import_id: str) -> List[StoredTransaction]:
        return self._paged_transactions(
            lambda: self._select(TRANSACTIONS)
            .eq("import_id", import_id)
            .order("date", desc=False)
            .order("id")
        )

    def transactions_for_merchant(self, merchant_key: str) -> List[StoredTransaction]:
        return self._paged_transactions(
            lambda: self._select(TRANSACTIONS)
            .eq("merchant_key", merchant_key)
            .order("date", desc=False)
            .order("id")
        )

    def find_by_fingerprint(
        self, account_id: str, fingerprint: str
    ) -> Optional[StoredTransaction]:
        response = (
            self._select(TRANSACTIONS)
            .eq("account_id", account_id)
            .eq("fingerprint", fingerprint)
            .limit(1)
            .execute()
        )
        rows = self._transactions(response)
        return rows[0] if rows else None

    def transactions_in_group(self, group_id: str) -> List[StoredTransaction]:
        response = self._select(TRANSACTIONS).eq("transfer_group_id", group_id).execute()
        return self._transactions(response)

    # Category rules

    def rules_for_merchant(self, merchant_key: str) -> List[CategoryRule]:
        response = self._select(RULES).eq("merchant_key", merchant_key).execute()
        return [CategoryRule.from_dict(row) for row in response.data or []]

    def save_rule(self, rule: CategoryRule) -> CategoryRule:
        self.client.table(RULES).upsert(rule.to_dict()).execute()
        return rule

    def delete_rule(self, rule_id: str) -> bool:
        response = self.client.table(RULES).delete().eq("id", rule_id).execute()
        return bool(response.data)

    def list_rules(self) -> List[CategoryRule]:
        rows = self._paged(lambda: self._select(RULES).order("last_used", desc=True).order("id"))
        return [CategoryRule.from_dict(row) for row in rows]

    # Accounts

    def save_account(self, account: Account) -> Account:
        self.client.table(ACCOUNTS).upsert(account.to_dict()).execute()
        return account

    def get_account(self, account_id: str) -> Optional[Account]:
        response = self._select(ACCOUNTS).eq("id", account_id).limit(1).execute()
        return Account.from_dict(response.data[0]) if response.data else None

    def list_accounts(self) -> List[Account]:
        response = self._select(ACCOUNTS).order("created_at", desc=False).execute()
        return [Account.from_dict(row) for row in response.data or []]

    # Imports

    def save_import(self, record: ImportRecord) -> ImportRecord:
        self.client.table(IMPORTS).upsert(record.to_dict()).execute()
        return record

    def get_import(self, import_id: str) -> Optional[ImportRecord]:
        response = self._select(IMPORTS).eq("id", import_id).limit(1).execute()
        return ImportRecord.from_dict(response.data[0]) if response.data else None

    def imports_for_account(self, account_id: str) -> List[ImportRecord]:
        response = (
            self._select(IMPORTS)
            .eq("account_id", account_id)
            .order("imported_at", desc=True)
            .execute()
        )
        return [ImportRecord.from_dict(row) for row in response.data or []]

    def recent_imports(self, limit: int = 10) -> List[ImportRecord]:
        response = self._select(IMPORTS).order("imported_at", desc=True).limit(limit).execute()
        return [ImportRecord.from_dict(row) for row in response.data or []]

    def delete_import(self, import_id: str) -> int:
        response = self.client.table(TRANSACTIONS).delete().eq("import_id", import_id).execute()
        removed = len(response.data or [])
        self.client.table(IMPORTS).delete().eq("id", import_id).execute()
        logger.info("import_deleted", import_id=import_id, transactions=removed)
        return removed

    def ping(self) -> bool:
        try:
            self.client.table(ACCOUNTS).select("id").limit(1).execute()
        except Exception as e:
            logger.warning("store_unreachable", error=str(e))
            return False
        return True
