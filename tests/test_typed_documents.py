from __future__ import annotations

from persistence.records import (
    ClientRecord,
    InvoiceRecord,
    StrikeRecord,
    TaskRecord,
    clients_document,
    invoices_document,
    strikes_document,
    tasks_document,
)
from persistence.typed import TypedDocument


def test_typed_clients_round_trip_and_keep_extra_fields(store):
    doc = clients_document(store)
    assert doc.get() == []

    acme = ClientRecord(id="a", name="Acme", retainer=True)
    assert doc.set([acme]) is True

    raw = store.load("clients", [])
    assert raw == [{"id": "a", "name": "Acme", "email": None, "phone": None, "company": None,
                    "status": "active", "retainer": True}]
    loaded = doc.get()
    assert loaded[0].name == "Acme"
    assert loaded[0].model_extra == {"retainer": True}


def test_mis_shaped_document_falls_back_to_default(store, caplog):
    store.save("invoices", [{"id": "inv-1"}])  # missing clientId
    with caplog.at_level("WARNING"):
        assert invoices_document(store).get() == []
    assert "validation error" in caplog.text


def test_update_is_read_modify_write(store):
    tasks = tasks_document(store)
    tasks.set([TaskRecord(id="t1", title="Edit reel")])
    tasks.update(lambda items: items + [TaskRecord(id="t2", title="Invoice client", clientId="a")])
    assert [t.id for t in tasks.get()] == ["t1", "t2"]


def test_strikes_and_invoice_defaults(store):
    strikes = strikes_document(store)
    strikes.set([StrikeRecord(id="s1", userId="u1", reason="late", date="2026-10-01")])
    assert strikes.get()[0].issuedBy is None

    inv = InvoiceRecord(id="inv-1", clientId="a")
    assert inv.status == "pending"
    assert inv.items == []


def test_typed_document_with_plain_types(store):
    titles: TypedDocument[dict[str, str]] = TypedDocument(store, "displayTitles", dict[str, str], dict)
    assert titles.set({"u1": "Creative Director"}) is True
    assert titles.get() == {"u1": "Creative Director"}
    assert titles.key == "displayTitles"
