"""State Bank of India Excel statement adapter.

SBI exports carry a block of account metadata above the transaction
table, so the header row has to be located by scanning. Columns after
the header are positional: Txn Date, Value Date, Description,
Ref No./Cheque No., Debit, Credit, Balance.
"""

import re
from typing import Any, Dict, List, Optional

import structlog

from ..errors import FormatValidationError, NoTransactionsError
from ..merchant_keys import (
    MAX_KEY_LENGTH,
    SELF_KEY,
    UNKNOWN_KEY,
    alnum,
    first_substantial_word,
)
from ..models import (
    ParseResult,
    StatementFile,
    StatementMetadata,
    TransactionHints,
    UnifiedTransaction,
)
from ..normalize import (
    cell_text,
    clean_description,
    compact_description,
    fingerprint_from_parts,
    is_empty_row,
    is_footer_row,
    parse_amount,
    parse_date,
    raw_field,
)
from ..progress import ProgressCallback, ProgressTracker
from ..readers import read_excel_rows
from .base import BankFormatAdapter

logger = structlog.get_logger()

HEADER_SCAN_ROWS = 30
MIN_HEADER_CELLS = 6
MIN_HEADER_MATCHES = 4
MIN_DATA_CELLS = 7

TXN_DATE, VALUE_DATE, DESCRIPTION, REF_NO, DEBIT, CREDIT, BALANCE = range(7)

NARRATION_PREFIXES = (
    "BY TRANSFER-",
    "TO TRANSFER-",
    "ATM-",
    "POS-",
    "CASH-",
    "DEBIT-IMPS",
    "CREDIT-IMPS",
)
# Only one channel prefix is stripped before key extraction
KEY_PREFIXES = ("BY TRANSFER-", "TO TRANSFER-", "ATM-", "POS-", "CASH-")
IMPS_PREFIXES = ("INB IMPS/", "IMPS/")
NEFT_UTR_PREFIXES = ("NEFT UTR NO:", "NEFT UTR:")
ACCOUNT_KEY_LENGTH = 30

SBI_STOPWORDS = frozenset({"THE", "AND", "FOR", "BY", "TO", "FROM", "OF"})

_TRAILER = re.compile(r"--.*$")
_TRANSFER_ACCOUNT = re.compile(r"([A-Z]+)-XX\d+-[A-Z\s]+")
_ACCOUNT_NUMBER = re.compile(r"\d{10,}")

HEADER_NOT_FOUND_MESSAGE = (
    "Could not find SBI statement headers. Please ensure this is a valid SBI statement."
)


def _trim_row(row: List[Any]) -> List[Any]:
    """Drop trailing blank cells so the row length reflects real content."""
    end = len(row)
    while end and not cell_text(row[end - 1]):
        end -= 1
    return list(row[:end])


def _header_matches(row: List[Any]) -> int:
    matches = 0
    for cell in (cell_text(c).lower() for c in row):
        if "txn" in cell or "transaction" in cell:
            matches += 1
        if "value" in cell and "date" in cell:
            matches += 1
        if "description" in cell:
            matches += 1
        if "ref" in cell or "cheque" in cell:
            matches += 1
        if "debit" in cell:
            matches += 1
        if "credit" in cell:
            matches += 1
        if "balance" in cell:
            matches += 1
    return matches


def find_header_row(rows: List[List[Any]]) -> int:
    """Index of the transaction table header within the first rows, or -1."""
    for index, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        trimmed = _trim_row(row)
        if len(trimmed) < MIN_HEADER_CELLS:
            continue
        if _header_matches(trimmed) >= MIN_HEADER_MATCHES:
            return index
    return -1


def extract_metadata(rows: List[List[Any]]) -> StatementMetadata:
    metadata = StatementMetadata()
    for row in rows:
        joined = " ".join(cell_text(c) for c in row if cell_text(c))
        lowered = joined.lower()
        if "account no" in lowered or "account number" in lowered:
            match = _ACCOUNT_NUMBER.search(lowered)
            if match:
                metadata.account_number = match.group(0)
        if "from" in lowered and "to" in lowered:
            metadata.statement_period = joined
    return metadata


class SBIStatementAdapter(BankFormatAdapter):
    bank_id = "SBI"
    bank_name = "State Bank of India"
    supported_formats = (".xls", ".xlsx")
    source = "SBI-EXCEL"

    def can_handle(self, narration: str) -> bool:
        return (narration or "").upper().startswith(NARRATION_PREFIXES)

    def can_parse_file(self, file: StatementFile) -> bool:
        if not self.accepts_extension(file):
            return False
        try:
            rows = read_excel_rows(file.content, password=file.password, nrows=HEADER_SCAN_ROWS)
        except FormatValidationError as e:
            logger.debug("sbi_probe_failed", file=file.name, error=str(e))
            return False
        return find_header_row(rows) != -1

    def _is_valid_row(self, row: List[Any]) -> bool:
        if len(row) < MIN_DATA_CELLS:
            return False
        if parse_date(row[TXN_DATE]) is None and parse_date(row[VALUE_DATE]) is None:
            return False
        if not cell_text(row[DESCRIPTION]):
            return False
        return bool(cell_text(row[DEBIT]) or cell_text(row[CREDIT]))

    def _parse_row(self, row: List[Any]) -> Optional[UnifiedTransaction]:
        value_date = parse_date(row[VALUE_DATE])
        txn_date = parse_date(row[TXN_DATE]) or value_date
        if txn_date is None:
            return None

        debit = parse_amount(row[DEBIT])
        credit = parse_amount(row[CREDIT])
        if debit > 0:
            amount, transaction_type = -debit, "debit"
        elif credit > 0:
            amount, transaction_type = credit, "credit"
        else:
            return None

        original: Dict[str, Any] = {
            "txn_date": cell_text(row[TXN_DATE]),
            "value_date": cell_text(row[VALUE_DATE]),
            "description": cell_text(row[DESCRIPTION]),
            "ref_no": cell_text(row[REF_NO]),
            "debit": cell_text(row[DEBIT]),
            "credit": cell_text(row[CREDIT]),
            "balance": cell_text(row[BALANCE]),
        }
        return UnifiedTransaction(
            date=txn_date,
            value_date=value_date,
            description=clean_description(row[DESCRIPTION]),
            amount=amount,
            balance=parse_amount(row[BALANCE]) or None,
            reference_no=original["ref_no"] or None,
            transaction_type=transaction_type,
            source=self.source,
            bank_name=self.bank_name,
            original_data=original,
        )

    def parse(
        self, file: StatementFile, on_progress: Optional[ProgressCallback] = None
    ) -> ParseResult:
        tracker = ProgressTracker(callback=on_progress)
        tracker.report("detecting", "Detecting SBI format...")
        tracker.report("reading", "Reading Excel file...")
        rows = read_excel_rows(file.content, password=file.password)
        header_index = find_header_row(rows)
        if header_index == -1:
            raise FormatValidationError(HEADER_NOT_FOUND_MESSAGE)

        metadata = extract_metadata(rows[:header_index])
        data_rows = rows[header_index + 1 :]
        tracker.total = len(data_rows)
        # Metadata block and header line count as skipped
        tracker.skipped_rows = header_index + 1
        tracker.report("parsing", "Parsing transactions...")

        transactions: List[UnifiedTransaction] = []
        errors = 0
        for offset, raw_row in enumerate(data_rows):
            row = _trim_row(raw_row)
            if is_empty_row(row):
                tracker.update(skipped=1)
                continue
            if is_footer_row(row):
                logger.debug("footer_reached", bank=self.bank_id, row=header_index + 1 + offset)
                tracker.update(skipped=1)
                break
            if not self._is_valid_row(row):
                tracker.update(skipped=1)
                continue

            try:
                txn = self._parse_row(row)
            except Exception as e:
                logger.warning(
                    "row_parse_failed",
                    bank=self.bank_id,
                    row=header_index + 1 + offset,
                    error=str(e),
                )
                txn = None
            if txn is None:
                errors += 1
                tracker.update()
                continue
            transactions.append(txn)
            tracker.update(found=1)

        tracker.report("validating", "Validating data...")
        if not transactions:
            raise NoTransactionsError("No valid transactions found in the file.")

        tracker.finish()
        logger.info(
            "statement_parsed",
            bank=self.bank_id,
            transactions=len(transactions),
            skipped=tracker.skipped_rows,
            errors=errors,
            account_number=metadata.account_number,
        )
        return ParseResult(
            transactions=transactions,
            metadata=metadata,
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
                raw_field(raw.get("ref_no"), default=""),
                raw_field(raw.get("debit")),
                raw_field(raw.get("credit")),
                raw_field(raw.get("balance")),
            ]
        )

    def extract_merchant_key(self, narration: str) -> str:
        """SBI narration to merchant key.

        Handles the NEFT UTR form (beneficiary after ``--``), the NEFT
        asterisk form (beneficiary in the last ``*`` field) and the IMPS
        slash form, where a ``BANK-XXnnnn-NAME`` account token is kept
        verbatim and self transfers without a name collapse to ``SELF``.
        """
        text = (narration or "").upper().strip()
        for prefix in KEY_PREFIXES:
            if text.startswith(prefix):
                text = text[len(prefix) :].strip()
                break
        for prefix in IMPS_PREFIXES:
            if text.startswith(prefix):
                text = text[len(prefix) :].strip()
                break

        if text.startswith(NEFT_UTR_PREFIXES):
            dash = text.find("--")
            if dash != -1:
                recipient = text[dash + 2 :].strip()
                if recipient:
                    return recipient[:ACCOUNT_KEY_LENGTH]

        if "*" in text:
            parts = text.split("*")
            if len(parts) >= 3:
                name = alnum(_TRAILER.sub("", parts[-1]).strip())
                if len(name) >= 3 and not name.isdigit():
                    return name[:MAX_KEY_LENGTH]

        if "/" in text:
            parts = text.split("/")
            is_self = _TRAILER.sub("", parts[-1]).strip() == SELF_KEY
            candidates = parts[1:-1] if is_self else parts[1:]
            key = self._slash_key(candidates)
            if key:
                return key
            if is_self:
                return SELF_KEY

        return first_substantial_word(text, stopwords=SBI_STOPWORDS, strip_corporate=False) or UNKNOWN_KEY

    @staticmethod
    def _slash_key(parts: List[str]) -> Optional[str]:
        for part in parts:
            part = part.strip()
            if part.isdigit():
                continue
            if "-XX" in part:
                return part[:ACCOUNT_KEY_LENGTH]
            name = alnum(part)
            if len(name) >= 3:
                return name[:MAX_KEY_LENGTH]
        return None

    def extract_hints(self, narration: str) -> TransactionHints:
        upper = (narration or "").upper()
        hints = TransactionHints()

        if upper.startswith(("BY TRANSFER-", "TO TRANSFER-")):
            hints.transaction_type = "transfer"
            hints.is_transfer = True

            if "/SELF" in upper or upper.endswith("SELF--") or "-SELF" in upper:
                hints.possible_category = "transfers"
                hints.is_self_transfer = True

            match = _TRANSFER_ACCOUNT.search(upper)
            if match:
                hints.transfer_account = match.group(0)
                if "SELF" in upper:
                    hints.possible_category = "transfers"
                    hints.is_self_transfer = True

        if upper.startswith("ATM-"):
            hints.transaction_type = "atm"

        if upper.startswith("POS-"):
            hints.transaction_type = "pos"
            hints.possible_category = "shopping"

        return hints
