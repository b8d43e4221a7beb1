"""Duplicate detection against an account's stored transactions."""

from collections import defaultdict
from typing import TYPE_CHECKING, Dict, List, Tuple

import structlog

from .models import DuplicateCheckResult, UnifiedTransaction
from .registry import ParserRegistry

if TYPE_CHECKING:
    from packages.storage.base import TransactionStore

logger = structlog.get_logger()


class DeduplicationEngine:
    """Classifies incoming transactions as exact, possible or not duplicates.

    Read only: the store is queried once per check and never written.
    """

    def __init__(self, store: "TransactionStore", registry: ParserRegistry):
        self.store = store
        self.registry = registry

    def check_for_duplicates(
        self, transactions: List[UnifiedTransaction], account_id: str
    ) -> List[DuplicateCheckResult]:
        existing = self.store.list_transactions(account_id)

        by_fingerprint = {}
        by_triple: Dict[Tuple, list] = defaultdict(list)
        for stored in existing:
            if stored.fingerprint:
                by_fingerprint.setdefault(stored.fingerprint, stored)
            by_triple[(stored.date, round(stored.amount, 2), stored.bank_name)].append(stored)

        results = []
        for txn in transactions:
            fingerprint = self.registry.fingerprint(txn, account_id)
            match = by_fingerprint.get(fingerprint)
            if match is not None:
                results.append(
                    DuplicateCheckResult(
                        transaction=txn,
                        fingerprint=fingerprint,
                        is_exact_duplicate=True,
                        confidence="exact",
                        existing_transaction=match,
                    )
                )
                continue

            similar = by_triple.get((txn.date, round(txn.amount, 2), txn.bank_name))
            if similar:
                results.append(
                    DuplicateCheckResult(
                        transaction=txn,
                        fingerprint=fingerprint,
                        is_exact_duplicate=False,
                        confidence="medium",
                        existing_transaction=similar[0],
                    )
                )
                continue

            results.append(
                DuplicateCheckResult(
                    transaction=txn,
                    fingerprint=fingerprint,
                    is_exact_duplicate=False,
                    confidence="low",
                )
            )

        exact = sum(1 for r in results if r.is_exact_duplicate)
        possible = sum(1 for r in results if r.is_possible_duplicate)
        logger.info(
            "duplicates_checked",
            account_id=account_id,
            incoming=len(transactions),
            existing=len(existing),
            exact=exact,
            possible=possible,
        )
        return results
