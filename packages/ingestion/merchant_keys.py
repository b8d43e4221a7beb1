"""Merchant key extraction from free-text narrations.

A merchant key is a short upper-case token ("SWIGGY", "NETFLIX",
"HDFC-XX991-SAGAR HD") that stays stable across statements. It joins
transactions to learned category rules and groups them for recurrence
detection. Extraction is a pure function of the narration and an
optional bank hint.
"""

import re
from typing import TYPE_CHECKING, Optional, Sequence

from .models import TransactionHints

if TYPE_CHECKING:
    from .registry import ParserRegistry

UNKNOWN_KEY = "UNKNOWN"
SELF_KEY = "SELF"
MAX_KEY_LENGTH = 20

GENERIC_PREFIXES = (
    r"^UPI-",
    r"^IMPS-",
    r"^NEFT-",
    r"^RTGS-",
    r"^ACH\s*D?-",
    r"^IB\s+",
    r"^ATW-",
    r"^\d+-",
)

STOPWORDS = frozenset({"THE", "AND", "FOR", "PAY", "VIA", "REF", "TXN", "TO", "FROM"})

_GATEWAY_NOISE = re.compile(r"RAZORPAY|PAYTM|PHONEPE|GOOGLEPAY|BHARATPE|PAYMENT|PAY$")
_CORPORATE_NOISE = re.compile(
    r"PRIVATE|LIMITED|LTD|PVT|INDIA|PAYMENT|PAYMENTS|SERVICES|RAZORPAY|PAYTM"
)
_WORD_SPLIT = re.compile(r"[\s\-.@/]")
_NON_ALNUM = re.compile(r"[^A-Z0-9]")


def strip_prefixes(text: str, prefixes: Sequence[str]) -> str:
    """Apply each prefix pattern once, in order."""
    for prefix in prefixes:
        text = re.sub(prefix, "", text)
    return text


def alnum(text: str) -> str:
    return _NON_ALNUM.sub("", text)


def _upi_key(cleaned: str) -> Optional[str]:
    # merchant-handle@bank style: first non-numeric part of 3+ chars
    for part in cleaned.split("-"):
        candidate = alnum(part)
        if len(candidate) < 3 or candidate.isdigit():
            continue
        name = alnum(part.split("@")[0].split(".")[0])
        name = _GATEWAY_NOISE.sub("", name)
        if len(name) >= 3:
            return name[:MAX_KEY_LENGTH]
    return None


def first_substantial_word(
    text: str, stopwords=STOPWORDS, strip_corporate: bool = True
) -> Optional[str]:
    """First token of 3+ alphanumerics that is not a stopword or a number."""
    for word in _WORD_SPLIT.split(text):
        token = alnum(word)
        if len(token) < 3 or token.isdigit() or token in stopwords:
            continue
        if strip_corporate:
            token = _CORPORATE_NOISE.sub("", token).strip()
        if len(token) >= 3:
            return token[:MAX_KEY_LENGTH]
    return None


def generic_merchant_key(narration: str, prefixes: Sequence[str] = GENERIC_PREFIXES) -> str:
    """Bank-agnostic merchant key.

    Strips transaction-type prefixes, handles UPI ``merchant-handle@bank``
    narrations specially, then falls back to the first substantial word and
    finally to the alphanumeric squeeze of the whole narration.
    """
    upper = (narration or "").upper().strip()
    cleaned = strip_prefixes(upper, prefixes)

    if upper.startswith("UPI-"):
        key = _upi_key(cleaned)
        if key:
            return key

    key = first_substantial_word(cleaned)
    if key:
        return key

    return alnum(cleaned)[:MAX_KEY_LENGTH] or UNKNOWN_KEY


class MerchantKeyExtractor:
    """Routes narrations to the right bank-specific extractor.

    With a bank hint (id or display name) the matching adapter is used;
    without one, the first adapter whose ``can_handle`` accepts the
    narration wins, and the generic algorithm covers everything else.
    """

    def __init__(self, registry: "ParserRegistry"):
        self.registry = registry

    def extract(self, narration: str, bank: Optional[str] = None) -> str:
        if not narration or not narration.strip():
            return UNKNOWN_KEY

        adapter = None
        if bank:
            adapter = self.registry.find(bank)
        if adapter is None:
            adapter = self.registry.detect_adapter(narration)
        if adapter is None:
            return generic_merchant_key(narration)
        return adapter.extract_merchant_key(narration)

    def hints(self, narration: str, bank: Optional[str] = None) -> TransactionHints:
        """Adapter hints for the narration, empty hints when no adapter applies."""
        adapter = self.registry.find(bank) if bank else None
        if adapter is None:
            adapter = self.registry.detect_adapter(narration or "")
        if adapter is None:
            return TransactionHints()
        return adapter.extract_hints(narration)
