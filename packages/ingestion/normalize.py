"""Cell-level normalization shared by all bank adapters.

Dates, amounts and narrations arrive in whatever shape the bank export
uses. These helpers turn them into ``datetime.date``, ``float`` and
single-spaced text, and build the hashed fingerprints used for dedup.
"""

import hashlib
import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional, Sequence

# Two-digit years below the pivot land in the 2000s, the rest in the 1900s.
TWO_DIGIT_YEAR_PIVOT = 50

# Spreadsheet day zero. Counting from 1899-12-30 keeps the 1900 leap-year bug.
EXCEL_EPOCH = date(1899, 12, 30)
_MAX_SERIAL = 100000

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_NUMERIC_DATE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})$")
_MONTH_NAME_DATE = re.compile(r"^(\d{1,2})[\s\-]([A-Za-z]{3})[\s\-](\d{2,4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T\s].*)?$")
_SERIAL = re.compile(r"^\d+(?:\.\d+)?$")

FOOTER_KEYWORDS = (
    "total",
    "closing",
    "opening",
    "summary",
    "end of statement",
    "page",
    "disclaimer",
    "terms",
    "conditions",
    "thank you",
)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def expand_year(year: int) -> int:
    """Expand a two-digit year around ``TWO_DIGIT_YEAR_PIVOT``."""
    if year >= 100:
        return year
    return 2000 + year if year < TWO_DIGIT_YEAR_PIVOT else 1900 + year


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def from_excel_serial(serial: float) -> Optional[date]:
    """Convert a spreadsheet serial day number to a date."""
    if not 0 < serial < _MAX_SERIAL:
        return None
    result = EXCEL_EPOCH + timedelta(days=int(serial))
    if not 1900 <= result.year <= 2100:
        return None
    return result


def parse_date(value: Any) -> Optional[date]:
    """Parse a statement date cell.

    Accepts date/datetime objects, spreadsheet serials (numbers or numeric
    strings), ``DD/MM/YY[YY]``, ``DD-MM-YY[YY]``, ``DD-MMM-YY[YY]``,
    ``DD MMM YYYY`` and ISO ``YYYY-MM-DD``. Returns None when the value
    is blank or not a valid calendar date.
    """
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return from_excel_serial(float(value))

    text = str(value).strip()
    if not text:
        return None

    if _SERIAL.match(text):
        return from_excel_serial(float(text))

    match = _NUMERIC_DATE.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        return _safe_date(expand_year(year), month, day)

    match = _MONTH_NAME_DATE.match(text)
    if match:
        month = _MONTHS.get(match.group(2).lower())
        if month is None:
            return None
        return _safe_date(expand_year(int(match.group(3))), month, int(match.group(1)))

    match = _ISO_DATE.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _safe_date(year, month, day)

    return None


def parse_amount(value: Any) -> float:
    """Parse an amount cell, treating blanks and junk as zero."""
    if _is_missing(value):
        return 0.0
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if not text or text in ("-", "0.00"):
        return 0.0

    text = re.sub(r"^[A-Za-z]{1,3}\.?\s*", "", text)  # INR, Rs.
    text = re.sub(r"[₹$€£¥,\s]", "", text)
    if text.startswith("(") and text.endswith(")"):
        text = "-" + text[1:-1]

    try:
        amount = float(text)
    except ValueError:
        return 0.0
    return 0.0 if math.isnan(amount) else amount


def cell_text(value: Any) -> str:
    """Render a cell as stripped text, blank for missing values."""
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def is_empty_row(row: Sequence[Any]) -> bool:
    return not any(cell_text(cell) for cell in row)


def is_footer_row(row: Sequence[Any]) -> bool:
    """True for summary/footer lines such as totals or disclaimers."""
    first = next((cell_text(cell) for cell in row if cell_text(cell)), "")
    if not first:
        return False
    lowered = first.lower()
    return any(keyword in lowered for keyword in FOOTER_KEYWORDS)


def clean_description(text: Any) -> str:
    return re.sub(r"\s+", " ", cell_text(text)).strip()


def normalize_header(header: Any) -> str:
    """Lower-case a header cell and collapse inner whitespace."""
    return re.sub(r"\s+", " ", cell_text(header).lower())


def header_signature(header: Any) -> str:
    """Header text reduced to lower-case words, punctuation removed."""
    return re.sub(r"[^\w\s]", "", normalize_header(header))


def compact_description(text: str) -> str:
    """Lower-cased narration with all whitespace removed."""
    return re.sub(r"\s+", "", (text or "").lower())


def raw_field(value: Any, default: str = "0") -> str:
    """Raw cell text for fingerprinting, ``default`` when blank."""
    text = cell_text(value)
    return text if text else default


def fingerprint_from_parts(parts: Iterable[Any]) -> str:
    """SHA256 over the underscore-joined parts."""
    raw = "_".join(str(part) for part in parts)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
