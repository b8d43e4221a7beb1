from typing import Dict, Iterable, Optional, Tuple
import re

from .constants import DEFAULT_KEYWORD_MAP


def _boundary_pattern(keyword: str) -> "re.Pattern[str]":
    # \b treats "_" as a word character; narrations only care about A-Z0-9
    return re.compile(r"(?<![A-Z0-9])" + re.escape(keyword) + r"(?![A-Z0-9])")


def contains_word(text_upper: str, keyword: str) -> bool:
    """True if ``keyword`` occurs in ``text_upper`` as a whole token."""
    return _boundary_pattern(keyword).search(text_upper) is not None


class KeywordMatcher:
    def __init__(self, rules: Optional[Dict[str, str]] = None):
        # Keys are upper-case; dict order is scan order
        self.rules: Dict[str, str] = dict(rules if rules is not None else DEFAULT_KEYWORD_MAP)
        self._patterns = [
            (keyword, category, _boundary_pattern(keyword))
            for keyword, category in self.rules.items()
        ]

    def exact(self, merchant_key: str) -> Optional[str]:
        """Category for a merchant key that is itself a known keyword."""
        if not merchant_key:
            return None
        return self.rules.get(merchant_key.upper())

    def matches(self, text: str) -> Iterable[Tuple[str, str]]:
        """Yield ``(keyword, category)`` for every whole-token hit, in scan order."""
        if not text:
            return
        text_upper = text.upper()
        for keyword, category, pattern in self._patterns:
            if pattern.search(text_upper):
                yield keyword, category

    def predict(self, text: str) -> Optional[str]:
        """
        First keyword that appears in ``text`` as a whole token.

        A keyword glued to other letters or digits ("ACT" in "TRANSACTION",
        "OLA" in "COLA") is not a match.
        """
        for _, category in self.matches(text):
            return category
        return None
