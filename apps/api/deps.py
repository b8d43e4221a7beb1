"""FastAPI dependencies: one set of domain services per process.

The store, registry and engines are built once from Settings and shared
by every request. Tests override ``get_services`` through
``app.dependency_overrides``.
"""

import threading
from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends

from apps.api.core.config import Settings, get_settings
from packages.categorization.engine import CategorizationEngine
from packages.categorization.recurrence import RecurrencePatternDetector
from packages.categorization.transfers import TransferMatchingEngine
from packages.ingestion.pipeline import ImportPipeline
from packages.ingestion.registry import ParserRegistry, build_default_registry
from packages.storage.base import TransactionStore
from packages.storage.memory import InMemoryStore
from packages.storage.supabase_store import create_supabase_store

logger = structlog.get_logger()

STORAGE_BACKENDS = ("memory", "supabase")


@dataclass
class Services:
    settings: Settings
    store: TransactionStore
    registry: ParserRegistry
    transfers: TransferMatchingEngine
    categorizer: CategorizationEngine
    pipeline: ImportPipeline


def build_store(settings: Settings) -> TransactionStore:
    backend = settings.STORAGE_BACKEND.lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND}")
    if backend == "supabase":
        return create_supabase_store(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
    return InMemoryStore()


def build_services(settings: Settings, store: Optional[TransactionStore] = None) -> Services:
    store = store if store is not None else build_store(settings)
    registry = build_default_registry()
    transfers = TransferMatchingEngine(store, date_window_days=settings.TRANSFER_DATE_WINDOW_DAYS)
    categorizer = CategorizationEngine(
        store,
        registry,
        recurrence=RecurrencePatternDetector(threshold=settings.RECURRENCE_CONFIDENCE_THRESHOLD),
        transfer_engine=transfers,
    )
    pipeline = ImportPipeline(
        store,
        registry,
        categorizer=categorizer,
        transfer_engine=transfers,
        batch_size=settings.IMPORT_BATCH_SIZE,
    )
    return Services(
        settings=settings,
        store=store,
        registry=registry,
        transfers=transfers,
        categorizer=categorizer,
        pipeline=pipeline,
    )


_services: Optional[Services] = None
_services_lock = threading.Lock()


def get_services() -> Services:
    """Get or create the process-wide services."""
    global _services
    if _services is None:
        with _services_lock:
            if _services is None:  # Double-checked locking
                settings = get_settings()
                _services = build_services(settings)
                logger.info("services_initialized", storage_backend=settings.STORAGE_BACKEND)
    return _services


def get_store(services: Services = Depends(get_services)) -> TransactionStore:
    return services.store
