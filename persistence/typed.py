from __future__ import annotations

import logging
from typing import Any, Callable, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .interfaces import DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


class TypedDocument(Generic[T]):
    """
    A single document validated against a caller-supplied shape.

    get() never raises for absent, corrupt or mis-shaped data; it falls back
    to default_factory() instead.
    """

    def __init__(self, store: DocumentStore, key: str, type_: Any, default_factory: Callable[[], T]):
        self._store = store
        self._key = key
        self._adapter: TypeAdapter[T] = TypeAdapter(type_)
        self._default_factory = default_factory

    @property
    def key(self) -> str:
        return self._key

    def get(self) -> T:
        raw = self._store.load(self._key, _MISSING)
        if raw is _MISSING:
            return self._default_factory()
        try:
            return self._adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning("TYPED LOAD %s: %d validation error(s), using default", self._key, e.error_count())
            return self._default_factory()

    def set(self, value: T) -> bool:
        try:
            doc = self._adapter.dump_python(value, mode="json")
        except PydanticSerializationError as e:
            logger.warning("TYPED SAVE %s: cannot serialize: %r", self._key, e)
            return False
        return self._store.save(self._key, doc)

    def update(self, fn: Callable[[T], T]) -> bool:
        """Read-modify-write. Not atomic across stores (last writer wins)."""
        return self.set(fn(self.get()))
