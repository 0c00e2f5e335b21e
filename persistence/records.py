from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .interfaces import DocumentStore
from .typed import TypedDocument


class _Record(BaseModel):
    # Feature code owns the shape; unknown fields ride along untouched.
    model_config = ConfigDict(extra="allow")


class ClientRecord(_Record):
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    status: str = "active"


class InvoiceRecord(_Record):
    id: str
    clientId: str
    amount: float = 0.0
    status: str = "pending"
    dueDate: str | None = None
    items: list[dict] = Field(default_factory=list)


class TaskRecord(_Record):
    id: str
    title: str
    completed: bool = False
    clientId: str | None = None
    dueDate: str | None = None


class StrikeRecord(_Record):
    id: str
    userId: str
    reason: str
    date: str
    issuedBy: str | None = None


def clients_document(store: DocumentStore) -> TypedDocument[list[ClientRecord]]:
    return TypedDocument(store, "clients", list[ClientRecord], list)


def invoices_document(store: DocumentStore) -> TypedDocument[list[InvoiceRecord]]:
    return TypedDocument(store, "invoices", list[InvoiceRecord], list)


def tasks_document(store: DocumentStore) -> TypedDocument[list[TaskRecord]]:
    return TypedDocument(store, "tasks", list[TaskRecord], list)


def strikes_document(store: DocumentStore) -> TypedDocument[list[StrikeRecord]]:
    return TypedDocument(store, "strikes", list[StrikeRecord], list)
