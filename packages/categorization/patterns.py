"""Special-pattern battery for unambiguous narrations.

Checks run in a fixed order and the first hit wins. The order matters:

1. insurance claims before insurance premiums, so a claim payout is
   income and not health;
2. refunds before income, so a refund goes back to the merchant's
   category when the merchant can be identified;
3. investments (SIP, mutual funds) before fees, since SIP narrations
   often carry charge-like words.
"""

import re
from typing import Callable, List, Optional, Tuple

from .constants import RootCategory
from .rules import KeywordMatcher

_CLAIM = re.compile(r"CLAIM SETTLEMENT|CLAIM AMOUNT|INSURANCE CLAIM")
_PREMIUM = re.compile(r"INSURANCE|LIC PREMIUM")
_VEHICLE = re.compile(r"\bCAR\b|\bVEHICLE\b|\bMOTOR\b|\bAUTO\b|TWO WHEELER|\bBIKE\b")
_REFUND = re.compile(r"REFUND")
_CASHBACK = re.compile(r"CASHBACK")
_INTEREST = re.compile(r"INTEREST PAID|INT PD|INTEREST CREDIT")
_INTEREST_WORD = re.compile(r"\bINTEREST\b")
_SALARY = re.compile(r"SALARY")
_LOAN = re.compile(
    r"\bEMI\b|LOAN PAYMENT|LOAN REPAYMENT|CREDIT CARD PAYMENT|CC PAYMENT"
)
_INVESTMENT = re.compile(r"MUTUAL FUND|\bSIP\b|TRADING|DEMAT|STOCKS?|SHARES")
_FEE = re.compile(
    r"(SERVICE|BANK|PROCESSING|TRANSACTION|ATM|LATE|ANNUAL|MAINTENANCE|RETURN|BOUNCE)"
    r"\s+(CHARGES?|FEES?)"
    r"|PENALTY|CHEQUE BOUNCE|(MIN BAL|MINIMUM BALANCE)\s+CHARGES?"
)
_EDUCATION = re.compile(r"(SCHOOL|COLLEGE|TUITION|EDUCATION)\s+FEES?")
_UTILITY = re.compile(
    r"(ELECTRICITY|WATER|GAS|INTERNET|BROADBAND|MOBILE|POSTPAID|DTH)\s+BILL"
)
_DIGITAL = re.compile(r"APP STORE|PLAY STORE|SOFTWARE LICENSE")
_TRAVEL = re.compile(
    r"FLIGHT|AIRLINES?|AIRWAYS|HOTEL BOOKING|TRAIN BOOKING|RAILWAY BOOKING|BUS BOOKING"
)
_SUBSCRIPTION = re.compile(r"MONTHLY SUBSCRIPTION|AUTOPAY|RECURRING PAYMENT")

# Categories a refund is never attributed to
_NON_MERCHANT = (RootCategory.INCOME.value, RootCategory.TRANSFERS.value)

Check = Callable[[str, float, KeywordMatcher], Optional[str]]


def _insurance_claim(text: str, amount: float, matcher: KeywordMatcher) -> Optional[str]:
    if amount > 0 and _CLAIM.search(text):
        return RootCategory.INCOME.value
    return None


def _insurance_premium(text: str, amount: float, matcher: KeywordMatcher) -> Optional[str]:
    if not _PREMIUM.search(text):
        return None
    if _VEHICLE.search(text):
        return RootCategory.TRANSPORT.value
    return RootCategory.HEALTH.value


def _refund(text: str, amount: float, matcher: KeywordMatcher) -> Optional[str]:
    if not _REFUND.search(text):
        return None
    for _, category in matcher.matches(text):
        if category not in _NON_MERCHANT:
            return category
    # Origin unknown: the money still came in
    return RootCategory.INCOME.value


def _income(text: str, amount: float, matcher: KeywordMatcher) -> Optional[str]:
    if _CASHBACK.search(text):
        return RootCategory.INCOME.value
    if _INTEREST.search(text) or (amount > 0 and _INTEREST_WORD.search(text)):
        return RootCategory.INCOME.value
    if amount > 0 and _SALARY.search(text):
        return RootCategory.INCOME.value
    return None


def _simple(pattern: "re.Pattern[str]", category: RootCategory) -> Check:
    def check(text: str, amount: float, matcher: KeywordMatcher) -> Optional[str]:
        return category.value if pattern.search(text) else None

    check.__name__ = f"_{category.value}"
    return check


SPECIAL_PATTERNS: List[Tuple[str, Check]] = [
    ("insurance_claim", _insurance_claim),
    ("insurance_premium", _insurance_premium),
    ("refund", _refund),
    ("income", _income),
    ("loan", _simple(_LOAN, RootCategory.LOANS)),
    ("investment", _simple(_INVESTMENT, RootCategory.INVESTMENTS)),
    ("fee", _simple(_FEE, RootCategory.FEES)),
    ("education", _simple(_EDUCATION, RootCategory.EDUCATION)),
    ("utility", _simple(_UTILITY, RootCategory.UTILITIES)),
    ("digital", _simple(_DIGITAL, RootCategory.DIGITAL)),
    ("travel", _simple(_TRAVEL, RootCategory.TRAVEL)),
    ("subscription", _simple(_SUBSCRIPTION, RootCategory.SUBSCRIPTIONS)),
]


def detect_special_pattern(
    narration: str, amount: float, matcher: Optional[KeywordMatcher] = None
) -> Optional[Tuple[str, str]]:
    """Return ``(pattern_name, category)`` for the first matching check."""
    if not narration:
        return None
    text = narration.upper()
    matcher = matcher or KeywordMatcher()
    for name, check in SPECIAL_PATTERNS:
        category = check(text, amount, matcher)
        if category:
            return name, category
    return None
