from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class Settings:
    # Storage namespace / naming
    store_namespace: str
    app_name: str

    # Substrate
    store_backend: str
    data_dir: str | None
    store_quota_bytes: int | None

    # Startup
    cleanup_on_startup: bool

    # Debug
    debug_log_requests: bool


def get_settings() -> Settings:
    store_namespace = os.getenv("STORE_NAMESPACE", "ascend-media").strip() or "ascend-media"
    app_name = os.getenv("APP_NAME", store_namespace).strip() or store_namespace

    store_backend = os.getenv("STORE_BACKEND", "disk").strip().lower()
    if store_backend not in ("disk", "memory"):
        store_backend = "disk"

    # Unset means <project root>/data (see persistence.paths).
    data_dir = os.getenv("DATA_DIR") or None

    # Only honoured by the memory backend; mirrors the browser storage quota.
    store_quota_bytes = _env_int("STORE_QUOTA_BYTES")

    cleanup_on_startup = _env_bool("CLEANUP_ON_STARTUP", True)
    debug_log_requests = _env_bool("DEBUG_LOG_REQUESTS", False)

    return Settings(
        store_namespace=store_namespace,
        app_name=app_name,
        store_backend=store_backend,
        data_dir=data_dir,
        store_quota_bytes=store_quota_bytes,
        cleanup_on_startup=cleanup_on_startup,
        debug_log_requests=debug_log_requests,
    )
