"""HDFC Bank CSV statement adapter.

HDFC net-banking exports are delimited text with the header on the first
line: Date, Narration, Value Dat, Debit Amount, Credit Amount,
Chq/Ref Number, Closing Balance. Cells are space padded and dates are
``DD/MM/YY``.
"""

import re
from typing import Any, Dict, List, Optional

import structlog

from ..errors import FormatValidationError, NoTransactionsError
from ..merchant_keys import generic_merchant_key
from ..models import (
    ParseResult,
    StatementFile,
    StatementMetadata,
    TransactionHints,
    UnifiedTransaction,
)
from ..normalize import (
    clean_description,
    compact_description,
    cell_text,
    fingerprint_from_parts,
    header_signature,
    is_empty_row,
    normalize_header,
    parse_amount,
    parse_date,
    raw_field,
)
from ..progress import ProgressCallback, ProgressTracker
from ..readers import read_csv_rows
from .base import BankFormatAdapter

logger = structlog.get_logger()

HEADER_PATTERNS = (
    re.compile(r"date"),
    re.compile(r"narration"),
    re.compile(r"debit|withdrawal"),
    re.compile(r"credit|deposit"),
    re.compile(r"balance"),
)
MIN_HEADER_MATCHES = 4

# Normalized header name -> field, first present alias wins
COLUMN_ALIASES = {
    "date": ("date",),
    "narration": ("narration",),
    "value_date": ("value dat", "value date", "valuedate"),
    "debit_amount": ("debit amount", "withdrawal amt", "withdrawal amount"),
    "credit_amount": ("credit amount", "deposit amt", "deposit amount"),
    "closing_balance": ("closing balance", "balance"),
    "ref_number": ("chq/ref number", "ref number", "chq./ref.no."),
}

NARRATION_PREFIXES = ("UPI-", "NEFT CR-", "IMPS-", "IB BILLPAY", "ATW-")
_IMPS_REF = re.compile(r"^IMPS-\d{12}-")
_CARD_NUMBER = re.compile(r"^\d{16}/")

HDFC_PREFIXES = (
    r"^UPI-",
    r"^IMPS-",
    r"^NEFT CR-",
    r"^RTGS-",
    r"^ACH\s*D?-",
    r"^IB\s+",
    r"^ATW-",
    r"^\d+-",
)

INVALID_FORMAT_MESSAGE = "Invalid CSV format. Expected HDFC bank statement headers."


def validate_headers(headers: List[Any]) -> bool:
    """At least four of the five expected header signals must be present."""
    if not headers:
        return False
    signatures = [header_signature(h) for h in headers]
    matched = sum(
        1 for pattern in HEADER_PATTERNS if any(pattern.search(sig) for sig in signatures)
    )
    return matched >= MIN_HEADER_MATCHES


class HDFCStatementAdapter(BankFormatAdapter):
    bank_id = "HDFC"
    bank_name = "HDFC Bank"
    supported_formats = (".csv", ".txt")
    source = "HDFC-CSV"

    def can_handle(self, narration: str) -> bool:
        upper = (narration or "").upper()
        return (
            upper.startswith(NARRATION_PREFIXES)
            or _IMPS_REF.match(upper) is not None
            or _CARD_NUMBER.match(upper) is not None
        )

    def can_parse_file(self, file: StatementFile) -> bool:
        if not self.accepts_extension(file):
            return False
        try:
            rows = read_csv_rows(file.content, nrows=5)
        except FormatValidationError:
            return False
        return bool(rows) and validate_headers(rows[0])

    def _row_map(self, headers: List[str], row: List[Any]) -> Dict[str, str]:
        by_header = {
            header: cell_text(row[i]) if i < len(row) else ""
            for i, header in enumerate(headers)
        }
        mapped = {}
        for field_name, aliases in COLUMN_ALIASES.items():
            mapped[field_name] = next((by_header[a] for a in aliases if by_header.get(a)), "")
        return mapped

    def _parse_row(self, headers: List[str], row: List[Any]) -> Optional[UnifiedTransaction]:
        data = self._row_map(headers, row)
        if not data["date"] or not data["narration"]:
            return None

        txn_date = parse_date(data["date"])
        if txn_date is None:
            return None

        debit = parse_amount(data["debit_amount"])
        credit = parse_amount(data["credit_amount"])
        if debit > 0:
            amount, transaction_type = -debit, "debit"
        elif credit > 0:
            amount, transaction_type = credit, "credit"
        else:
            return None

        balance = parse_amount(data["closing_balance"])
        return UnifiedTransaction(
            date=txn_date,
            value_date=parse_date(data["value_date"]) if data["value_date"] else None,
            description=clean_description(data["narration"]),
            amount=amount,
            balance=balance or None,
            reference_no=data["ref_number"] or None,
            transaction_type=transaction_type,
            source=self.source,
            bank_name=self.bank_name,
            original_data=data,
        )

    def parse(
        self, file: StatementFile, on_progress: Optional[ProgressCallback] = None
    ) -> ParseResult:
        tracker = ProgressTracker(callback=on_progress)
        tracker.report("detecting", "Detecting HDFC format...")
        tracker.report("reading", "Reading CSV file...")
        rows = read_csv_rows(file.content)
        if not rows or not validate_headers(rows[0]):
            raise FormatValidationError(INVALID_FORMAT_MESSAGE)

        headers = [normalize_header(h) for h in rows[0]]
        data_rows = rows[1:]
        tracker.total = len(data_rows)
        tracker.report("parsing", f"Processing {len(data_rows)} rows...")

        transactions: List[UnifiedTransaction] = []
        errors = 0
        for index, row in enumerate(data_rows, start=2):
            if is_empty_row(row):
                tracker.update(skipped=1)
                continue
            try:
                txn = self._parse_row(headers, row)
            except Exception as e:
                errors += 1
                logger.warning("row_parse_failed", bank=self.bank_id, row=index, error=str(e))
                tracker.update()
                continue

            if txn is None:
                logger.debug("row_skipped", bank=self.bank_id, row=index)
                tracker.update(skipped=1)
                continue
            transactions.append(txn)
            tracker.update(found=1)

        tracker.report("validating", "Validating transactions...")
        if not transactions:
            raise NoTransactionsError("No valid transactions found in the CSV file.")

        tracker.finish()
        logger.info(
            "statement_parsed",
            bank=self.bank_id,
            transactions=len(transactions),
            skipped=tracker.skipped_rows,
            errors=errors,
        )
        return ParseResult(
            transactions=transactions,
            metadata=StatementMetadata(),
            error_count=errors,
            skipped_rows=tracker.skipped_rows,
        )

    def generate_fingerprint(self, txn: UnifiedTransaction, account_id: str) -> str:
        raw = txn.original_data or {}
        return fingerprint_from_parts(
            [
                account_id,
                self.bank_id,
                txn.date.isoformat(),
                compact_description(txn.description),
                raw_field(raw.get("value_date"), default=""),
                raw_field(raw.get("debit_amount")),
                raw_field(raw.get("credit_amount")),
                raw_field(raw.get("closing_balance")),
            ]
        )

    def extract_merchant_key(self, narration: str) -> str:
        return generic_merchant_key(narration, prefixes=HDFC_PREFIXES)

    def extract_hints(self, narration: str) -> TransactionHints:
        upper = (narration or "").upper()
        hints = TransactionHints()

        if "SELF TRANSFER" in upper or "OWN ACCOUNT" in upper:
            hints.is_transfer = True
            hints.is_self_transfer = True
            hints.possible_category = "transfers"

        # Later matches win: "IB BILLPAY CREDIT CARD" is a credit
        if upper.startswith("IB BILLPAY"):
            hints.transaction_type = "billpay"
        if upper.startswith("ATW-"):
            hints.transaction_type = "atm"
        if upper.startswith("NEFT CR-") or "CREDIT" in upper:
            hints.transaction_type = "credit"

        return hints
