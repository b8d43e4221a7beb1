"""
Statement Ingestion

Bank statement parsing, merchant key extraction and duplicate detection.
The import pipeline lives in ``packages.ingestion.pipeline`` because it
depends on the storage package.
"""

__version__ = "0.2.0"

from .adapters import BankFormatAdapter, HDFCStatementAdapter, SBIStatementAdapter
from .dedup import DeduplicationEngine
from .merchant_keys import MerchantKeyExtractor, generic_merchant_key
from .models import (
    DuplicateCheckResult,
    ParseProgress,
    ParseResult,
    StatementFile,
    StatementMetadata,
    TransactionHints,
    UnifiedTransaction,
)
from .registry import ParserRegistry, build_default_registry

__all__ = [
    "BankFormatAdapter",
    "HDFCStatementAdapter",
    "SBIStatementAdapter",
    "DeduplicationEngine",
    "MerchantKeyExtractor",
    "generic_merchant_key",
    "DuplicateCheckResult",
    "ParseProgress",
    "ParseResult",
    "StatementFile",
    "StatementMetadata",
    "TransactionHints",
    "UnifiedTransaction",
    "ParserRegistry",
    "build_default_registry",
]
