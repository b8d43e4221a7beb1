"""Process-local store with secondary indexes.

Used by the CLI, by tests and as the default API backend. Every index
is maintained on insert, update and delete, and a per-account list of
``(date, id)`` pairs kept sorted with ``bisect`` serves range queries.
"""

import bisect
import copy
import threading
from collections import defaultdict
from datetime import date
from typing import Any, Dict, List, Optional, Set, Tuple

import structlog

from .base import TransactionStore
from .models import Account, CategoryRule, ImportRecord, StoredTransaction

logger = structlog.get_logger()

# Fields whose change requires re-indexing
_INDEXED_FIELDS = frozenset(
    {"account_id", "import_id", "merchant_key", "fingerprint", "transfer_group_id", "date"}
)


class InMemoryStore(TransactionStore):
    def __init__(self):
        self._lock = threading.RLock()
        self._transactions: Dict[str, StoredTransaction] = {}
        self._by_account: Dict[str, Set[str]] = defaultdict(set)
        self._by_import: Dict[str, Set[str]] = defaultdict(set)
        self._by_merchant: Dict[str, Set[str]] = defaultdict(set)
        self._by_group: Dict[str, Set[str]] = defaultdict(set)
        self._by_fingerprint: Dict[Tuple[str, str], str] = {}
        self._dates: Dict[str, List[Tuple[date, str]]] = defaultdict(list)

        self._rules: Dict[str, CategoryRule] = {}
        self._rules_by_merchant: Dict[str, Set[str]] = defaultdict(set)
        self._accounts: Dict[str, Account] = {}
        self._imports: Dict[str, ImportRecord] = {}

    # Indexing

    def _index(self, txn: StoredTransaction) -> None:
        self._by_account[txn.account_id].add(txn.id)
        if txn.import_id:
            self._by_import[txn.import_id].add(txn.id)
        if txn.merchant_key:
            self._by_merchant[txn.merchant_key].add(txn.id)
        if txn.transfer_group_id:
            self._by_group[txn.transfer_group_id].add(txn.id)
        if txn.fingerprint:
            self._by_fingerprint.setdefault((txn.account_id, txn.fingerprint), txn.id)
        bisect.insort(self._dates[txn.account_id], (txn.date, txn.id))

    def _unindex(self, txn: StoredTransaction) -> None:
        self._by_account[txn.account_id].discard(txn.id)
        if txn.import_id:
            self._by_import[txn.import_id].discard(txn.id)
        if txn.merchant_key:
            self._by_merchant[txn.merchant_key].discard(txn.id)
        if txn.transfer_group_id:
            self._by_group[txn.transfer_group_id].discard(txn.id)
        if txn.fingerprint and self._by_fingerprint.get((txn.account_id, txn.fingerprint)) == txn.id:
            del self._by_fingerprint[(txn.account_id, txn.fingerprint)]
        entries = self._dates[txn.account_id]
        pos = bisect.bisect_left(entries, (txn.date, txn.id))
        if pos < len(entries) and entries[pos] == (txn.date, txn.id):
            entries.pop(pos)

    def _copies(self, ids) -> List[StoredTransaction]:
        rows = [self._transactions[i] for i in ids if i in self._transactions]
        rows.sort(key=lambda t: (t.date, t.created_at))
        return [copy.deepcopy(t) for t in rows]

    # Transactions

    def insert_transactions(self, transactions: List[StoredTransaction]) -> None:
        with self._lock:
            for txn in transactions:
                if txn.id in self._transactions:
                    raise ValueError(f"Duplicate transaction id: {txn.id}")
            for txn in transactions:
                stored = copy.deepcopy(txn)
                self._transactions[stored.id] = stored
                self._index(stored)
        logger.debug("transactions_inserted", count=len(transactions))

    def get_transaction(self, transaction_id: str) -> Optional[StoredTransaction]:
        with self._lock:
            txn = self._transactions.get(transaction_id)
            return copy.deepcopy(txn) if txn else None

    def update_transaction(
        self, transaction_id: str, changes: Dict[str, Any]
    ) -> Optional[StoredTransaction]:
        with self._lock:
            txn = self._transactions.get(transaction_id)
            if txn is None:
                return None
            unknown = [key for key in changes if not hasattr(txn, key)]
            if unknown:
                raise AttributeError(f"Unknown transaction field(s): {', '.join(unknown)}")
            reindex = bool(_INDEXED_FIELDS.intersection(changes))
            if reindex:
                self._unindex(txn)
            for key, value in changes.items():
                setattr(txn, key, value)
            if reindex:
                self._index(txn)
            return copy.deepcopy(txn)

    def delete_transactions(self, transaction_ids: List[str]) -> int:
        removed = 0
        with self._lock:
            for transaction_id in transaction_ids:
                txn = self._transactions.pop(transaction_id, None)
                if txn is None:
                    continue
                self._unindex(txn)
                removed += 1
        return removed

    def list_transactions(self, account_id: Optional[str] = None) -> List[StoredTransaction]:
        with self._lock:
            if account_id is None:
                return self._copies(list(self._transactions))
            return self._copies([tid for _, tid in self._dates.get(account_id, [])])

    def transactions_in_range(
        self, account_id: str, start: date, end: date
    ) -> List[StoredTransaction]:
        with self._lock:
            entries = self._dates.get(account_id, [])
            lo = bisect.bisect_left(entries, (start, ""))
            ids = []
            for entry_date, tid in entries[lo:]:
                if entry_date > end:
                    break
                ids.append(tid)
            return self._copies(ids)

    def transactions_for_import(self, import_id: str) -> List[StoredTransaction]:
        with self._lock:
            return self._copies(self._by_import.get(import_id, ()))

    def transactions_for_merchant(self, merchant_key: str) -> List[StoredTransaction]:
        with self._lock:
            return self._copies(self._by_merchant.get(merchant_key, ()))

    def find_by_fingerprint(
        self, account_id: str, fingerprint: str
    ) -> Optional[StoredTransaction]:
        with self._lock:
            tid = self._by_fingerprint.get((account_id, fingerprint))
            return copy.deepcopy(self._transactions[tid]) if tid else None

    def transactions_in_group(self, group_id: str) -> List[StoredTransaction]:
        with self._lock:
            return self._copies(self._by_group.get(group_id, ()))

    # Category rules

    def rules_for_merchant(self, merchant_key: str) -> List[CategoryRule]:
        with self._lock:
            return [copy.deepcopy(self._rules[r]) for r in self._rules_by_merchant.get(merchant_key, ())]

    def save_rule(self, rule: CategoryRule) -> CategoryRule:
        with self._lock:
            previous = self._rules.get(rule.id)
            if previous is not None:
                self._rules_by_merchant[previous.merchant_key].discard(rule.id)
            self._rules[rule.id] = copy.deepcopy(rule)
            self._rules_by_merchant[rule.merchant_key].add(rule.id)
        return rule

    def delete_rule(self, rule_id: str) -> bool:
        with self._lock:
            rule = self._rules.pop(rule_id, None)
            if rule is None:
                return False
            self._rules_by_merchant[rule.merchant_key].discard(rule_id)
            return True

    def list_rules(self) -> List[CategoryRule]:
        with self._lock:
            return sorted(
                (copy.deepcopy(r) for r in self._rules.values()),
                key=lambda r: r.last_used,
                reverse=True,
            )

    # Accounts

    def save_account(self, account: Account) -> Account:
        with self._lock:
            self._accounts[account.id] = copy.deepcopy(account)
        return account

    def get_account(self, account_id: str) -> Optional[Account]:
        with self._lock:
            account = self._accounts.get(account_id)
            return copy.deepcopy(account) if account else None

    def list_accounts(self) -> List[Account]:
        with self._lock:
            return sorted((copy.deepcopy(a) for a in self._accounts.values()), key=lambda a: a.created_at)

    # Imports

    def save_import(self, record: ImportRecord) -> ImportRecord:
        with self._lock:
            self._imports[record.id] = copy.deepcopy(record)
        return record

    def get_import(self, import_id: str) -> Optional[ImportRecord]:
        with self._lock:
            record = self._imports.get(import_id)
            return copy.deepcopy(record) if record else None

    def imports_for_account(self, account_id: str) -> List[ImportRecord]:
        with self._lock:
            records = [r for r in self._imports.values() if r.account_id == account_id]
            records.sort(key=lambda r: r.imported_at, reverse=True)
            return [copy.deepcopy(r) for r in records]

    def recent_imports(self, limit: int = 10) -> List[ImportRecord]:
        with self._lock:
            records = sorted(self._imports.values(), key=lambda r: r.imported_at, reverse=True)
            return [copy.deepcopy(r) for r in records[:limit]]

    def delete_import(self, import_id: str) -> int:
        with self._lock:
            removed = self.delete_transactions(list(self._by_import.get(import_id, ())))
            self._imports.pop(import_id, None)
        logger.info("import_deleted", import_id=import_id, transactions=removed)
        return removed
