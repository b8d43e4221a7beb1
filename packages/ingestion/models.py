"""Records produced by the bank statement adapters."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional


@dataclass
class StatementFile:
    """An uploaded statement: file name plus raw bytes."""

    name: str
    content: bytes
    password: Optional[str] = None

    @property
    def extension(self) -> str:
        dot = self.name.rfind(".")
        return self.name[dot:].lower() if dot != -1 else ""

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: str, password: Optional[str] = None) -> "StatementFile":
        with open(path, "rb") as f:
            content = f.read()
        return cls(name=path.replace("\\", "/").rsplit("/", 1)[-1], content=content, password=password)


@dataclass
class UnifiedTransaction:
    """Bank-agnostic transaction emitted by an adapter, not yet persisted."""

    date: date
    description: str
    amount: float
    transaction_type: str
    source: str
    bank_name: str
    value_date: Optional[date] = None
    balance: Optional[float] = None
    reference_no: Optional[str] = None
    original_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "date": self.date.isoformat(),
            "value_date": self.value_date.isoformat() if self.value_date else None,
            "description": self.description,
            "amount": self.amount,
            "balance": self.balance,
            "reference_no": self.reference_no,
            "transaction_type": self.transaction_type,
            "source": self.source,
            "bank_name": self.bank_name,
            "original_data": dict(self.original_data),
        }


@dataclass
class TransactionHints:
    """Format-level signals an adapter can read off a narration."""

    transaction_type: Optional[str] = None
    possible_category: Optional[str] = None
    is_transfer: bool = False
    is_self_transfer: bool = False
    transfer_account: Optional[str] = None


@dataclass
class StatementMetadata:
    account_number: Optional[str] = None
    account_holder: Optional[str] = None
    statement_period: Optional[str] = None
    bank_branch: Optional[str] = None
    extracted_at: datetime = field(default_factory=datetime.now)


@dataclass
class ParseProgress:
    """Progress snapshot; stage is detecting, reading, parsing, validating or complete."""

    stage: str
    rows_processed: int = 0
    transactions_found: int = 0
    skipped_rows: int = 0
    message: str = ""


@dataclass
class ParseResult:
    transactions: List[UnifiedTransaction]
    metadata: StatementMetadata
    error_count: int = 0
    skipped_rows: int = 0


@dataclass
class DuplicateCheckResult:
    """Outcome of checking one incoming transaction against stored ones.

    ``confidence`` is ``exact`` for a fingerprint hit, ``medium`` for a
    same date/amount/bank match and ``low`` for a new transaction.
    """

    transaction: UnifiedTransaction
    fingerprint: str
    is_exact_duplicate: bool
    confidence: str
    existing_transaction: Optional[Any] = None

    @property
    def is_possible_duplicate(self) -> bool:
        return self.confidence == "medium"
