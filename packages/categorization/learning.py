"""Rule learning as an explicit precedence state machine.

Each merchant key is in one of three states:

    no-rule  --system write-->  system-rule
    no-rule  --user write---->  user-rule
    system-rule --system write, higher confidence--> system-rule (replaced)
    system-rule --system write, same or lower------> system-rule (kept)
    system-rule --user write-----------------------> user-rule
    user-rule   --system write-----------------------> user-rule (kept)
    user-rule   --user write-------------------------> user-rule (replaced)

Every write that reaches an existing rule bumps its usage count and
last-used timestamp, whether or not the rule is replaced.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

import structlog

from packages.storage.models import CategoryRule

from .constants import is_root_category

if TYPE_CHECKING:
    from packages.storage.base import TransactionStore

logger = structlog.get_logger()

USER = "user"
SYSTEM = "system"
USER_CONFIDENCE = 1.0


class RuleState(str, Enum):
    NO_RULE = "no-rule"
    SYSTEM_RULE = "system-rule"
    USER_RULE = "user-rule"


def state_of(rule: Optional[CategoryRule]) -> RuleState:
    if rule is None:
        return RuleState.NO_RULE
    return RuleState.USER_RULE if rule.is_user_rule else RuleState.SYSTEM_RULE


def transition(
    current: RuleState,
    created_by: str,
    confidence: float,
    existing_confidence: float = 0.0,
) -> Tuple[RuleState, bool]:
    """Return ``(next_state, replace)`` for a write against ``current``."""
    if current is RuleState.NO_RULE:
        return (RuleState.USER_RULE if created_by == USER else RuleState.SYSTEM_RULE), True
    if created_by == USER:
        return RuleState.USER_RULE, True
    if current is RuleState.USER_RULE:
        return RuleState.USER_RULE, False
    return RuleState.SYSTEM_RULE, confidence > existing_confidence


class RuleBook:
    """Learned category rules keyed by merchant key."""

    def __init__(self, store: "TransactionStore"):
        self.store = store

    def lookup(self, merchant_key: str) -> Optional[CategoryRule]:
        """The governing rule: a user rule if one exists, else the most confident."""
        rules = self.store.rules_for_merchant(merchant_key)
        if not rules:
            return None
        return max(
            rules,
            key=lambda r: (r.is_user_rule, r.confidence, r.last_used),
        )

    def state(self, merchant_key: str) -> RuleState:
        return state_of(self.lookup(merchant_key))

    def touch(self, rule: CategoryRule) -> CategoryRule:
        rule.usage_count += 1
        rule.last_used = datetime.now()
        return self.store.save_rule(rule)

    def write(
        self,
        merchant_key: str,
        category: str,
        created_by: str = SYSTEM,
        confidence: float = USER_CONFIDENCE,
    ) -> CategoryRule:
        """Create or update the rule for ``merchant_key``."""
        if not is_root_category(category):
            raise ValueError(f"Unknown root category: {category}")
        if created_by not in (USER, SYSTEM):
            raise ValueError(f"created_by must be 'user' or 'system', got {created_by!r}")
        if created_by == USER:
            confidence = USER_CONFIDENCE
        if not 0.0 <= confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {confidence}")

        existing = self.lookup(merchant_key)
        current = state_of(existing)
        next_state, replace = transition(
            current, created_by, confidence, existing.confidence if existing else 0.0
        )

        if existing is None:
            rule = self.store.save_rule(
                CategoryRule(
                    merchant_key=merchant_key,
                    root_category=category,
                    created_by=created_by,
                    confidence=confidence,
                )
            )
            logger.info(
                "rule_created",
                merchant_key=merchant_key,
                category=category,
                created_by=created_by,
                confidence=confidence,
            )
            return rule

        if replace:
            existing.root_category = category
            existing.confidence = confidence
            existing.created_by = created_by
        rule = self.touch(existing)
        logger.debug(
            "rule_updated" if replace else "rule_kept",
            merchant_key=merchant_key,
            category=rule.root_category,
            transition=f"{current.value}->{next_state.value}",
        )
        return rule

    def rules_for_merchant(self, merchant_key: str) -> List[CategoryRule]:
        return self.store.rules_for_merchant(merchant_key)

    def all_rules(self) -> List[CategoryRule]:
        return self.store.list_rules()

    def delete(self, rule_id: str) -> bool:
        deleted = self.store.delete_rule(rule_id)
        if deleted:
            logger.info("rule_deleted", rule_id=rule_id)
        return deleted
