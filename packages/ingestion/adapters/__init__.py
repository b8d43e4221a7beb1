# packages/ingestion/adapters/__init__.py
from .base import BankFormatAdapter
from .hdfc import HDFCStatementAdapter
from .sbi import SBIStatementAdapter

__all__ = ["BankFormatAdapter", "HDFCStatementAdapter", "SBIStatementAdapter"]
