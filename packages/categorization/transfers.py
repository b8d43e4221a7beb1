"""Inter-account transfer detection and linking."""

import re
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog

from packages.ingestion.errors import TransactionNotFoundError
from packages.storage.models import StoredTransaction

from .constants import RootCategory

if TYPE_CHECKING:
    from packages.storage.base import TransactionStore

logger = structlog.get_logger()

DEFAULT_DATE_WINDOW_DAYS = 3
AMOUNT_EPSILON = 0.01

TRANSFER_PATTERNS = [
    re.compile(p)
    for p in (
        r"SELF",
        r"OWN ACCOUNT",
        r"TRANSFER-INB",
        r"BY TRANSFER",
        r"TO TRANSFER",
        r"IMPS/P2A",
        r"NEFT.*SELF",
        r"RTGS.*SELF",
    )
]

ACCOUNT_HINT_PATTERNS = [
    (bank, re.compile(bank + r"-XX(\d{3,4})", re.IGNORECASE))
    for bank in ("HDFC", "SBI", "ICICI", "AXIS", "KOTAK")
]

CONFIDENCE_ORDER = {"exact": 0, "high": 1, "medium": 2, "low": 3}
AUTO_LINK_CONFIDENCE = ("exact", "high")

_CLEARED_LINK = {
    "is_internal_transfer": False,
    "linked_account_id": None,
    "linked_transaction_id": None,
    "transfer_group_id": None,
}


@dataclass
class TransferMatch:
    transaction: StoredTransaction
    confidence: str
    match_reason: str
    days_apart: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction": self.transaction.to_dict(),
            "confidence": self.confidence,
            "match_reason": self.match_reason,
            "days_apart": self.days_apart,
        }


def new_transfer_group_id() -> str:
    return "tg_" + uuid.uuid4().hex


class TransferMatchingEngine:
    """
    Finds and links the two sides of a money movement between accounts.

    A transfer shows up as a debit in one account and a credit of the
    same size in another, usually within a few days. Linked pairs share
    a transfer group id and point at each other.
    """

    def __init__(
        self,
        store: "TransactionStore",
        date_window_days: int = DEFAULT_DATE_WINDOW_DAYS,
    ):
        self.store = store
        self.date_window_days = date_window_days

    def is_likely_transfer(self, narration: str) -> bool:
        if not narration:
            return False
        upper = narration.upper()
        return any(p.search(upper) for p in TRANSFER_PATTERNS)

    def extract_account_hints(self, narration: str) -> Dict[str, str]:
        """Bank code and masked account suffix, e.g. ``HDFC-XX1234``."""
        hints: Dict[str, str] = {}
        if not narration:
            return hints
        for bank, pattern in ACCOUNT_HINT_PATTERNS:
            match = pattern.search(narration)
            if match:
                hints["bank_name"] = bank
                hints["account_last4"] = match.group(1)
                break
        return hints

    def find_potential_matches(
        self,
        transaction: StoredTransaction,
        target_account_id: str,
        date_window_days: Optional[int] = None,
    ) -> List[TransferMatch]:
        window = self.date_window_days if date_window_days is None else date_window_days
        start = transaction.date - timedelta(days=window)
        end = transaction.date + timedelta(days=window)

        matches: List[TransferMatch] = []
        for candidate in self.store.transactions_in_range(target_account_id, start, end):
            if candidate.id == transaction.id:
                continue
            if (
                candidate.linked_transaction_id
                and candidate.linked_transaction_id != transaction.id
            ):
                continue
            if abs(transaction.amount + candidate.amount) >= AMOUNT_EPSILON:
                continue

            days = abs((candidate.date - transaction.date).days)
            if days == 0:
                matches.append(
                    TransferMatch(candidate, "exact", "Same date and matching amount", 0)
                )
            else:
                matches.append(
                    TransferMatch(
                        candidate,
                        "high" if days <= 1 else "medium",
                        f"Matching amount, {days} day(s) apart",
                        days,
                    )
                )

        matches.sort(key=lambda m: (CONFIDENCE_ORDER[m.confidence], m.days_apart))
        return matches

    def link_transfer(
        self,
        source_id: str,
        linked_account_id: str,
        linked_transaction_id: Optional[str] = None,
    ) -> str:
        """Link ``source_id`` to an account, and optionally to its partner row.

        Returns the transfer group id shared by both sides.
        """
        source = self.store.get_transaction(source_id)
        if source is None:
            raise TransactionNotFoundError("Source transaction not found")

        partner = None
        if linked_transaction_id:
            partner = self.store.get_transaction(linked_transaction_id)
            if partner is None:
                raise TransactionNotFoundError("Linked transaction not found")

        group_id = source.transfer_group_id or new_transfer_group_id()

        self.store.update_transaction(
            source_id,
            {
                "category": RootCategory.TRANSFERS.value,
                "is_internal_transfer": True,
                "linked_account_id": linked_account_id,
                "linked_transaction_id": linked_transaction_id,
                "transfer_group_id": group_id,
            },
        )
        if partner is not None:
            self.store.update_transaction(
                partner.id,
                {
                    "category": RootCategory.TRANSFERS.value,
                    "is_internal_transfer": True,
                    "linked_account_id": source.account_id,
                    "linked_transaction_id": source_id,
                    "transfer_group_id": group_id,
                },
            )

        logger.info(
            "transfer_linked",
            source_id=source_id,
            linked_account_id=linked_account_id,
            linked_transaction_id=linked_transaction_id,
            transfer_group_id=group_id,
        )
        return group_id

    def unlink_transfer(self, transaction_id: str) -> bool:
        """Clear the link on a transaction and on its partner, if any."""
        transaction = self.store.get_transaction(transaction_id)
        if transaction is None:
            return False

        if transaction.linked_transaction_id:
            self.store.update_transaction(transaction.linked_transaction_id, dict(_CLEARED_LINK))
        self.store.update_transaction(transaction_id, dict(_CLEARED_LINK))

        logger.info(
            "transfer_unlinked",
            transaction_id=transaction_id,
            partner_id=transaction.linked_transaction_id,
        )
        return True

    def get_transfer_group(self, group_id: str) -> List[StoredTransaction]:
        return self.store.transactions_in_group(group_id)

    def _target_account(self, transaction: StoredTransaction) -> Optional[str]:
        last4 = self.extract_account_hints(transaction.description).get("account_last4")
        if not last4:
            return None
        for account in self.store.list_accounts():
            if account.id == transaction.account_id:
                continue
            if account.account_number and account.account_number.endswith(last4):
                return account.id
        return None

    def auto_link(self, transaction: StoredTransaction) -> Optional[str]:
        """
        Link ``transaction`` to its counterpart when the evidence is strong.

        Returns ``"linked"`` when a pair was committed, ``"hinted"`` when
        only the target account could be recorded, and None when the
        narration names no known account.
        """
        target = self._target_account(transaction)
        if target is None:
            return None

        matches = self.find_potential_matches(transaction, target)
        if matches and matches[0].confidence in AUTO_LINK_CONFIDENCE:
            self.link_transfer(transaction.id, target, matches[0].transaction.id)
            return "linked"

        self.store.update_transaction(transaction.id, {"linked_account_id": target})
        logger.debug(
            "transfer_account_hinted",
            transaction_id=transaction.id,
            linked_account_id=target,
            candidates=len(matches),
        )
        return "hinted"

    def auto_link_transfers(self, import_id: str) -> Dict[str, int]:
        """Auto-link an import's transfer transactions after they are saved.

        Rows already linked while they were categorized count as linked.
        """
        counts = {"linked": 0, "hinted": 0}
        for transaction in self.store.transactions_for_import(import_id):
            if transaction.linked_transaction_id:
                counts["linked"] += 1
                continue
            if transaction.category != RootCategory.TRANSFERS.value:
                continue
            if not self.is_likely_transfer(transaction.description):
                continue
            outcome = self.auto_link(transaction)
            if outcome:
                counts[outcome] += 1

        logger.info("transfers_auto_linked", import_id=import_id, **counts)
        return counts
