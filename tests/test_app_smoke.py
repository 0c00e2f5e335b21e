from __future__ import annotations

from fastapi.testclient import TestClient


def test_app_smoke_routes(reload_endpoints):
    import app as app_module

    client = TestClient(app_module.create_app())

    r = client.get("/documents")
    assert r.status_code == 200
    assert r.json() == {"keys": [], "hasStoredData": False}

    # mcp redirect helpers
    r = client.get("/mcp", follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == "/mcp/"
