"""Persisted entities.

Dates travel as ISO strings in ``to_dict``/``from_dict`` so the same
mapping serves the Supabase tables and the JSON API.
"""

import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from packages.ingestion.models import UnifiedTransaction


def new_id() -> str:
    return str(uuid.uuid4())


def _to_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _to_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def iso_value(value: Any) -> Any:
    return value.isoformat() if isinstance(value, (date, datetime)) else value


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class StoredTransaction(UnifiedTransaction):
    """A transaction after import, owned by exactly one account."""

    id: str = field(default_factory=new_id)
    account_id: str = ""
    import_id: Optional[str] = None
    fingerprint: str = ""
    merchant_key: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    is_duplicate: bool = False
    original_transaction_id: Optional[str] = None
    is_internal_transfer: bool = False
    linked_account_id: Optional[str] = None
    linked_transaction_id: Optional[str] = None
    transfer_group_id: Optional[str] = None
    is_reconciled: bool = False
    tags: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_unified(cls, txn: UnifiedTransaction, **extra: Any) -> "StoredTransaction":
        base = {f.name: getattr(txn, f.name) for f in fields(UnifiedTransaction)}
        base["original_data"] = dict(txn.original_data)
        base.update(extra)
        return cls(**base)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        for f in fields(StoredTransaction):
            if f.name not in data:
                data[f.name] = iso_value(getattr(self, f.name))
        data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredTransaction":
        values = _known_fields(cls, data)
        values["date"] = _to_date(values.get("date"))
        values["value_date"] = _to_date(values.get("value_date"))
        if values.get("created_at") is not None:
            values["created_at"] = _to_datetime(values["created_at"])
        for key in ("amount", "balance"):
            if values.get(key) is not None:
                values[key] = float(values[key])
        values["original_data"] = dict(values.get("original_data") or {})
        values["tags"] = list(values.get("tags") or [])
        return cls(**values)


@dataclass
class Account:
    name: str
    bank_name: str
    account_type: str = "savings"
    account_number: Optional[str] = None
    is_active: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    ACCOUNT_TYPES = ("savings", "current", "credit")

    def __post_init__(self):
        if self.account_type not in self.ACCOUNT_TYPES:
            raise ValueError(f"Unknown account type: {self.account_type}")
        # Only the last four digits are ever kept
        if self.account_number:
            self.account_number = str(self.account_number)[-4:]

    def to_dict(self) -> Dict[str, Any]:
        return {k: iso_value(v) for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        values = _known_fields(cls, data)
        for key in ("created_at", "updated_at"):
            if values.get(key) is not None:
                values[key] = _to_datetime(values[key])
        return cls(**values)


@dataclass
class ImportRecord:
    """One statement upload and its outcome counters."""

    account_id: str
    file_name: str
    file_size: int
    file_format: str
    bank_name: str
    display_name: Optional[str] = None
    id: str = field(default_factory=new_id)
    imported_at: datetime = field(default_factory=datetime.now)
    total_rows: int = 0
    success_count: int = 0
    error_count: int = 0
    debit_count: int = 0
    credit_count: int = 0
    duplicate_count: int = 0
    status: str = "pending"
    error_message: Optional[str] = None

    STATUSES = ("pending", "processing", "completed", "failed")

    def to_dict(self) -> Dict[str, Any]:
        return {k: iso_value(v) for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportRecord":
        values = _known_fields(cls, data)
        if values.get("imported_at") is not None:
            values["imported_at"] = _to_datetime(values["imported_at"])
        return cls(**values)


@dataclass
class CategoryRule:
    """Learned mapping from a merchant key to a root category."""

    merchant_key: str
    root_category: str
    created_by: str = "system"
    confidence: float = 0.5
    sub_category: Optional[str] = None
    usage_count: int = 1
    id: str = field(default_factory=new_id)
    last_used: datetime = field(default_factory=datetime.now)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_user_rule(self) -> bool:
        return self.created_by == "user"

    def to_dict(self) -> Dict[str, Any]:
        return {k: iso_value(v) for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CategoryRule":
        values = _known_fields(cls, data)
        for key in ("last_used", "created_at"):
            if values.get(key) is not None:
                values[key] = _to_datetime(values[key])
        if values.get("confidence") is not None:
            values["confidence"] = float(values["confidence"])
        return cls(**values)
