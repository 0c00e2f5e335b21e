from __future__ import annotations

import importlib
from datetime import datetime, timezone
from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import persistence...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def sandbox_project(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Redirect persistence paths to a temp project directory so tests never touch real ./data.
    """
    import persistence.paths as paths

    for name in ("STORE_BACKEND", "STORE_NAMESPACE", "APP_NAME", "DATA_DIR", "STORE_QUOTA_BYTES"):
        monkeypatch.delenv(name, raising=False)

    def _project_root() -> Path:
        return tmp_path

    def _data_dir() -> Path:
        p = tmp_path / "data"
        p.mkdir(parents=True, exist_ok=True)
        return p

    monkeypatch.setattr(paths, "project_root", _project_root)
    monkeypatch.setattr(paths, "data_dir", _data_dir)
    return tmp_path


@pytest.fixture
def reload_endpoints(sandbox_project: Path) -> None:
    """
    Endpoints create store singletons at import time; reload after sandboxing paths.
    """
    import endpoints.document_endpoints as document_endpoints
    import endpoints.mcp_endpoints as mcp_endpoints

    importlib.reload(document_endpoints)
    importlib.reload(mcp_endpoints)


@pytest.fixture
def memory_backend():
    from persistence.backends import MemoryStorageBackend

    return MemoryStorageBackend()


@pytest.fixture
def store(memory_backend):
    from persistence.document_store import LocalDocumentStore

    return LocalDocumentStore(memory_backend, clock=lambda: FIXED_NOW)
