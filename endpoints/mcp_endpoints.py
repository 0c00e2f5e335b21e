from __future__ import annotations

import json
import logging
from typing import Any, Literal

from typing_extensions import TypedDict

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from endpoints.document_endpoints import ASYNC_STORE
from persistence.document_store import validate_document_key

logger = logging.getLogger(__name__)

_MISSING = object()


class ToolTextContent(TypedDict):
    type: Literal["text"]
    text: str


class DocumentToolResponse(TypedDict, total=False):
    content: list[ToolTextContent]
    structuredContent: dict[str, Any]


def _parse_key(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    s = value.strip()
    try:
        return validate_document_key(s)
    except ValueError:
        return None


def _reply(message: str | None = None, **structured: Any) -> DocumentToolResponse:
    return {
        "content": ([{"type": "text", "text": message}] if message else []),
        "structuredContent": structured,
    }


mcp = FastMCP(
    "Ascend Media documents",
    stateless_http=True,
    json_response=True,
    # Served behind the dashboard's own host names; FastMCP's localhost-only
    # DNS rebinding check would reject them with 421.
    transport_security=TransportSecuritySettings(enable_dns_rebinding_protection=False),
)


@mcp.tool()
async def list_documents() -> DocumentToolResponse:
    """
    Lists the document keys currently stored.
    """
    keys = await ASYNC_STORE.stored_keys()
    return _reply(
        f"{len(keys)} document(s) stored." if keys else "No documents stored yet.",
        keys=keys,
        hasStoredData=await ASYNC_STORE.has_stored_data(),
    )


@mcp.tool()
async def load_document(key: str) -> DocumentToolResponse:
    """
    Returns the JSON document stored under a key (e.g. "clients", "invoices").
    """
    parsed = _parse_key(key)
    if parsed is None:
        return _reply("Invalid input: `key` must be a non-empty, non-reserved string.")
    value = await ASYNC_STORE.load(parsed, _MISSING)
    if value is _MISSING:
        return _reply(f"Document {parsed} was not found.", key=parsed, found=False)
    return _reply(f"Loaded document {parsed}.", key=parsed, found=True, value=value)


@mcp.tool()
async def save_document(key: str, value: Any) -> DocumentToolResponse:
    """
    Replaces the document stored under a key with the given JSON value.
    """
    parsed = _parse_key(key)
    if parsed is None:
        return _reply("Invalid input: `key` must be a non-empty, non-reserved string.")
    ok = await ASYNC_STORE.save(parsed, value)
    msg = f"Saved document {parsed}." if ok else f"Document {parsed} could not be saved."
    return _reply(msg, key=parsed, saved=ok)


@mcp.tool()
async def export_backup() -> DocumentToolResponse:
    """
    Exports every document as a backup bundle and records the backup time.
    """
    result = await ASYNC_STORE.export_json()
    if result is None:
        return _reply("Export failed.", exported=False)
    filename, text = result
    return _reply(f"Exported backup {filename}.", exported=True, filename=filename, bundle=json.loads(text))


@mcp.tool()
async def import_backup(bundle_json: str) -> DocumentToolResponse:
    """
    Restores documents from a previously exported backup bundle (JSON text).
    """
    if not isinstance(bundle_json, str) or not bundle_json.strip():
        return _reply("Invalid input: `bundle_json` must be non-empty JSON text.", imported=False)
    ok = await ASYNC_STORE.import_data(bundle_json)
    if not ok:
        logger.info("MCP IMPORT: bundle rejected")
    return _reply("Backup imported." if ok else "Backup bundle was invalid; nothing changed.", imported=ok)


@mcp.tool()
async def backup_status() -> DocumentToolResponse:
    """
    Reports when the last backup export happened.
    """
    last = await ASYNC_STORE.get_last_backup_time()
    if last is None:
        return _reply("No backup has been exported yet.", lastBackupTime=None)
    return _reply(f"Last backup: {last.isoformat()}.", lastBackupTime=last.isoformat())
