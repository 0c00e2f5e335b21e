# document_endpoints.py
from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from persistence import AsyncDocumentStore, create_document_store
from persistence.document_store import validate_document_key
from settings import get_settings

router = APIRouter(tags=["documents"])
logger = logging.getLogger(__name__)

# Centralized settings
SETTINGS = get_settings()
DEBUG_LOG_REQUESTS = SETTINGS.debug_log_requests

# Exported singletons: other modules (MCP tools, app lifespan) share this store.
DOCUMENT_STORE = create_document_store(SETTINGS)
ASYNC_STORE = AsyncDocumentStore(DOCUMENT_STORE)

_MISSING = object()


def _check_key(key: str) -> str:
    """
    Reject keys the store treats as programming errors (empty / reserved)
    before they reach it, so the client gets a 400 instead of a 500.
    """
    try:
        validate_document_key(key)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return key


@router.get("/documents")
async def list_documents() -> JSONResponse:
    keys = await ASYNC_STORE.stored_keys()
    return JSONResponse({"keys": keys, "hasStoredData": await ASYNC_STORE.has_stored_data()})


@router.get("/documents/{key}")
async def get_document(key: str) -> JSONResponse:
    _check_key(key)
    value = await ASYNC_STORE.load(key, _MISSING)
    if value is _MISSING:
        raise HTTPException(status_code=404, detail=f"document {key!r} not found")
    return JSONResponse({"key": key, "value": value})


@router.put("/documents/{key}")
async def put_document(key: str, request: Request) -> JSONResponse:
    _check_key(key)
    raw = await request.body()
    try:
        value: Any = json.loads(raw)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="request body must be JSON") from e

    if DEBUG_LOG_REQUESTS:
        logger.debug("PUT /documents/%s: %d bytes", key, len(raw))

    if not await ASYNC_STORE.save(key, value):
        raise HTTPException(status_code=422, detail=f"document {key!r} could not be saved")
    return JSONResponse({"key": key, "saved": True})


@router.delete("/documents/{key}")
async def delete_document(key: str) -> JSONResponse:
    _check_key(key)
    existed = await ASYNC_STORE.load(key, _MISSING) is not _MISSING
    removed = await ASYNC_STORE.remove(key)
    return JSONResponse({"key": key, "removed": bool(existed and removed)})


@router.get("/backup/export")
async def export_backup() -> Response:
    result = await ASYNC_STORE.export_json()
    if result is None:
        raise HTTPException(status_code=500, detail="export failed")
    filename, text = result
    logger.info("EXPORT: serving %s (%d bytes)", filename, len(text))
    return Response(
        content=text,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/backup/import")
async def import_backup(request: Request) -> JSONResponse:
    raw = await request.body()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail="bundle must be UTF-8 JSON") from e

    if not await ASYNC_STORE.import_data(text):
        raise HTTPException(status_code=400, detail="invalid backup bundle")
    return JSONResponse({"imported": True})


@router.get("/backup/status")
async def backup_status() -> JSONResponse:
    last = await ASYNC_STORE.get_last_backup_time()
    return JSONResponse({"lastBackupTime": last.isoformat() if last else None})
