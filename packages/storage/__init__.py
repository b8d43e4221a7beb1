"""
Transaction storage backends.

An in-memory indexed store for local use and tests, and a Supabase
store for deployments.
"""

from .base import TransactionStore
from .memory import InMemoryStore
from .models import Account, CategoryRule, ImportRecord, StoredTransaction

__all__ = [
    "TransactionStore",
    "InMemoryStore",
    "Account",
    "CategoryRule",
    "ImportRecord",
    "StoredTransaction",
]
