# packages/categorization/engine.py
import re
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog

from packages.ingestion.errors import TransactionNotFoundError
from packages.ingestion.merchant_keys import MerchantKeyExtractor
from packages.ingestion.models import UnifiedTransaction

from .constants import FUEL_KEYWORDS, UNCATEGORIZED, RootCategory, is_root_category
from .learning import SYSTEM, USER, RuleBook
from .patterns import detect_special_pattern
from .recurrence import RecurrencePattern, RecurrencePatternDetector
from .rules import KeywordMatcher, contains_word

if TYPE_CHECKING:
    from packages.ingestion.registry import ParserRegistry
    from packages.storage.base import TransactionStore
    from packages.storage.models import CategoryRule, StoredTransaction

    from .transfers import TransferMatchingEngine

logger = structlog.get_logger()

SPECIAL_PATTERN_CONFIDENCE = 0.7
EXACT_KEYWORD_CONFIDENCE = 0.8
WORD_SCAN_CONFIDENCE = 0.5

SELF_TRANSFER_PATTERNS = [
    re.compile(p) for p in (r"\bSELF\b", r"OWN ACCOUNT", r"IMPS/P2A", r"SELF TRANSFER")
]


class CategorizationEngine:
    """
    Assigns a root category to a transaction and learns from each decision.

    Decision order, first hit wins:

    1. user rule for the merchant key
    2. explicit transfer signal (adapter hints or self-transfer phrasing)
    3. special-pattern battery
    4. fuel merchants forced to transport, else subscription-like recurrence
    5. system rule for the merchant key
    6. exact keyword map on the merchant key
    7. whole-word keyword scan over the narration
    8. None, the transaction stays uncategorized

    Every branch after the first writes a system rule, so the next
    transaction from the same merchant resolves at step 5.
    """

    def __init__(
        self,
        store: "TransactionStore",
        registry: "ParserRegistry",
        matcher: Optional[KeywordMatcher] = None,
        recurrence: Optional[RecurrencePatternDetector] = None,
        transfer_engine: Optional["TransferMatchingEngine"] = None,
    ):
        self.store = store
        self.merchant_keys = MerchantKeyExtractor(registry)
        self.rules = RuleBook(store)
        self.matcher = matcher or KeywordMatcher()
        self.recurrence = recurrence or RecurrencePatternDetector()
        self.transfer_engine = transfer_engine

    def merchant_key_for(self, txn: UnifiedTransaction) -> str:
        stored = getattr(txn, "merchant_key", None)
        if stored:
            return stored
        return self.merchant_keys.extract(txn.description, txn.bank_name)

    # Detection

    def detect_category(self, txn: UnifiedTransaction) -> Optional[str]:
        merchant_key = self.merchant_key_for(txn)
        narration = txn.description or ""
        upper = narration.upper()

        rule = self.rules.lookup(merchant_key)
        if rule is not None and rule.is_user_rule:
            self.rules.touch(rule)
            return rule.root_category

        if self._is_transfer_signal(txn, upper):
            self.rules.write(merchant_key, RootCategory.TRANSFERS.value, SYSTEM)
            self._try_auto_link(txn)
            return RootCategory.TRANSFERS.value

        special = detect_special_pattern(narration, txn.amount, self.matcher)
        if special:
            name, category = special
            logger.debug("special_pattern_matched", pattern=name, merchant_key=merchant_key)
            self.rules.write(merchant_key, category, SYSTEM, SPECIAL_PATTERN_CONFIDENCE)
            return category

        if any(contains_word(upper, kw) for kw in FUEL_KEYWORDS):
            self.rules.write(merchant_key, RootCategory.TRANSPORT.value, SYSTEM)
            return RootCategory.TRANSPORT.value

        pattern = self._recurrence_for(merchant_key, txn)
        if (
            pattern.is_recurring
            and pattern.is_subscription_like
            and pattern.confidence >= self.recurrence.threshold
        ):
            self.rules.write(
                merchant_key, RootCategory.SUBSCRIPTIONS.value, SYSTEM, pattern.confidence
            )
            return RootCategory.SUBSCRIPTIONS.value

        if rule is not None:
            self.rules.touch(rule)
            return rule.root_category

        category = self.matcher.exact(merchant_key)
        if category:
            self.rules.write(merchant_key, category, SYSTEM, EXACT_KEYWORD_CONFIDENCE)
            return category

        category = self.matcher.predict(narration)
        if category:
            self.rules.write(merchant_key, category, SYSTEM, WORD_SCAN_CONFIDENCE)
            return category

        return None

    def _is_transfer_signal(self, txn: UnifiedTransaction, upper: str) -> bool:
        hints = self.merchant_keys.hints(txn.description, txn.bank_name)
        if hints.is_self_transfer or hints.possible_category == RootCategory.TRANSFERS.value:
            return True
        return any(p.search(upper) for p in SELF_TRANSFER_PATTERNS)

    def _try_auto_link(self, txn: UnifiedTransaction) -> None:
        # Only persisted rows can be linked
        if self.transfer_engine is None or not getattr(txn, "account_id", None):
            return
        if self.store.get_transaction(txn.id) is None:
            return
        self.transfer_engine.auto_link(txn)

    def _recurrence_for(self, merchant_key: str, txn: UnifiedTransaction) -> RecurrencePattern:
        account_id = getattr(txn, "account_id", None)
        history = [
            t
            for t in self.store.transactions_for_merchant(merchant_key)
            if not account_id or t.account_id == account_id
        ]
        return self.recurrence.detect(history)

    def detect_recurring_merchant(
        self, merchant_key: str, account_id: Optional[str] = None
    ) -> RecurrencePattern:
        history = [
            t
            for t in self.store.transactions_for_merchant(merchant_key)
            if account_id is None or t.account_id == account_id
        ]
        return self.recurrence.detect(history)

    def detect_all_recurring_merchants(
        self, account_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        by_merchant: Dict[str, List["StoredTransaction"]] = OrderedDict()
        for txn in self.store.list_transactions(account_id):
            by_merchant.setdefault(self.merchant_key_for(txn), []).append(txn)

        recurring = []
        for merchant_key, history in by_merchant.items():
            pattern = self.recurrence.detect(history)
            if pattern.is_recurring and pattern.frequency:
                recurring.append(
                    {
                        "merchant_key": merchant_key,
                        "frequency": pattern.frequency,
                        "average_amount": pattern.average_amount,
                        "confidence": pattern.confidence,
                        "transaction_count": len(history),
                    }
                )
        return sorted(recurring, key=lambda r: r["confidence"], reverse=True)

    # Manual and bulk categorization

    def categorize_transaction(
        self, transaction_id: str, category: str, save_rule: bool = True
    ) -> "StoredTransaction":
        if not is_root_category(category):
            raise ValueError(f"Unknown root category: {category}")
        txn = self.store.get_transaction(transaction_id)
        if txn is None:
            raise TransactionNotFoundError(f"Transaction not found: {transaction_id}")

        updated = self.store.update_transaction(transaction_id, {"category": category})
        if save_rule:
            self.rules.write(self.merchant_key_for(txn), category, USER)
        return updated

    def bulk_categorize(self, transaction_ids: List[str], category: str) -> int:
        for transaction_id in transaction_ids:
            self.categorize_transaction(transaction_id, category, save_rule=True)
        return len(transaction_ids)

    def auto_categorize(self, import_id: Optional[str] = None) -> Dict[str, int]:
        """Categorize every uncategorized transaction, one at a time.

        Sequential on purpose: each decision may write a rule the next
        transaction from the same merchant reads.
        """
        if import_id:
            candidates = self.store.transactions_for_import(import_id)
        else:
            candidates = self.store.list_transactions()

        success = failed = 0
        for txn in candidates:
            if txn.category:
                continue
            category = self.detect_category(txn)
            if category:
                self.store.update_transaction(txn.id, {"category": category})
                success += 1
            else:
                failed += 1

        logger.info("auto_categorized", import_id=import_id, success=success, failed=failed)
        return {"success": success, "failed": failed}

    def find_similar_transactions(
        self, merchant_key: str, import_id: Optional[str] = None
    ) -> List["StoredTransaction"]:
        """Uncategorized transactions that share ``merchant_key``."""
        return [
            t
            for t in self.store.transactions_for_merchant(merchant_key)
            if not t.category and (import_id is None or t.import_id == import_id)
        ]

    def categorize_merchant_transactions(
        self, merchant_key: str, category: str, import_id: Optional[str] = None
    ) -> int:
        if not is_root_category(category):
            raise ValueError(f"Unknown root category: {category}")
        similar = self.find_similar_transactions(merchant_key, import_id)
        for txn in similar:
            self.store.update_transaction(txn.id, {"category": category})
        self.rules.write(merchant_key, category, USER)
        return len(similar)

    # Reporting

    def category_stats(self, account_id: Optional[str] = None) -> Dict[str, Dict[str, float]]:
        transactions = self.store.list_transactions(account_id)
        stats: Dict[str, Dict[str, float]] = {}
        for txn in transactions:
            entry = stats.setdefault(
                txn.category or UNCATEGORIZED, {"count": 0, "amount": 0.0, "percentage": 0.0}
            )
            entry["count"] += 1
            entry["amount"] += txn.amount

        total = len(transactions)
        for entry in stats.values():
            entry["percentage"] = entry["count"] / total * 100 if total else 0.0
        return stats

    # Rules

    def rules_for_merchant(self, merchant_key: str) -> List["CategoryRule"]:
        return self.rules.rules_for_merchant(merchant_key)

    def delete_rule(self, rule_id: str) -> bool:
        return self.rules.delete(rule_id)

    def all_rules(self) -> List["CategoryRule"]:
        return self.rules.all_rules()
