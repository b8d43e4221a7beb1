"""Ingestion router: supported banks, statement preview and import."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from apps.api.deps import Services, get_services
from apps.api.domains.ingestion import service
from apps.api.domains.ingestion.schemas import (
    BanksResponse,
    DeleteImportResponse,
    ImportSummaryOut,
    ImportsResponse,
    PreviewResponse,
)

router = APIRouter(prefix="/ingest", tags=["ingestion"])
logger = structlog.get_logger()


@router.get("/banks", response_model=BanksResponse)
async def list_banks(services: Services = Depends(get_services)):
    """Banks with a registered statement adapter."""
    return {
        "banks": services.registry.supported_banks(),
        "accepted_file_types": services.registry.accepted_file_types(),
    }


@router.post("/preview", response_model=PreviewResponse)
async def preview_statement(
    file: UploadFile = File(...),
    account_id: str = Form(...),
    bank: str = Form(...),
    password: Optional[str] = Form(None),
    services: Services = Depends(get_services),
):
    """Parse a statement and classify duplicates without saving anything."""
    service.require_account(services, account_id)
    statement = await service.read_statement(file, password, services.settings.MAX_UPLOAD_BYTES)
    checks = await run_in_threadpool(services.pipeline.preview, statement, account_id, bank)
    return service.serialize_checks(checks)


@router.post("/import", response_model=ImportSummaryOut)
async def import_statement(
    file: UploadFile = File(...),
    account_id: str = Form(...),
    bank: str = Form(...),
    password: Optional[str] = Form(None),
    skip_duplicates: bool = Form(True),
    display_name: Optional[str] = Form(None),
    services: Services = Depends(get_services),
):
    """Import a statement into an account.

    Parsing, duplicate detection, categorization and transfer linking run
    in a worker thread; imports into the same account are serialized.
    """
    service.require_account(services, account_id)
    statement = await service.read_statement(file, password, services.settings.MAX_UPLOAD_BYTES)
    summary = await run_in_threadpool(
        services.pipeline.run,
        statement,
        account_id,
        bank,
        None,
        skip_duplicates,
        display_name,
    )
    logger.info("ingest_complete", import_id=summary.import_id, imported=summary.imported)
    return summary.to_dict()


@router.get("/imports", response_model=ImportsResponse)
async def list_imports(
    account_id: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    return service.list_imports(services, account_id)


@router.delete("/imports/{import_id}", response_model=DeleteImportResponse)
async def delete_import(import_id: str, services: Services = Depends(get_services)):
    """Delete an import and every transaction it created."""
    return service.delete_import(services, import_id)
