from __future__ import annotations

import asyncio


def test_mcp_tools_basic_flow(reload_endpoints):
    async def _run():
        import endpoints.mcp_endpoints as mcp

        r = await mcp.list_documents()
        assert r["structuredContent"]["keys"] == []

        r = await mcp.save_document(key="clients", value=[{"id": "a", "name": "Acme"}])
        assert r["structuredContent"]["saved"] is True

        r = await mcp.load_document(key="clients")
        assert r["structuredContent"]["value"] == [{"id": "a", "name": "Acme"}]

        r = await mcp.load_document(key="  ")
        assert "Invalid input" in r["content"][0]["text"]

        r = await mcp.save_document(key="__meta__", value=[1, 2])
        assert "Invalid input" in r["content"][0]["text"]
        assert "saved" not in r["structuredContent"]

        r = await mcp.backup_status()
        assert r["structuredContent"]["lastBackupTime"] is None

        r = await mcp.export_backup()
        assert r["structuredContent"]["exported"] is True
        bundle = r["structuredContent"]["bundle"]
        assert bundle["clients"] == [{"id": "a", "name": "Acme"}]

        r = await mcp.import_backup(bundle_json='{"invoices": []}')
        assert r["structuredContent"]["imported"] is True

        r = await mcp.import_backup(bundle_json="[]")
        assert r["structuredContent"]["imported"] is False

        r = await mcp.backup_status()
        assert r["structuredContent"]["lastBackupTime"] is not None

    asyncio.run(_run())
