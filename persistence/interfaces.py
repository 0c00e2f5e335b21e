from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol, TypeVar

if TYPE_CHECKING:
    from .signals import ChangeBus, StorageEvent

T = TypeVar("T")


class StorageBackend(Protocol):
    """
    Raw string key/value substrate, shaped like the browser's localStorage.

    Every backend owns a ChangeBus; stores attached to the same backend
    see each other's writes through it.
    """

    bus: "ChangeBus"

    def get_item(self, key: str) -> str | None:
        """Return the stored string, or None when the key is absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any prior content."""
        ...

    def remove_item(self, key: str) -> None:
        """Delete key; a missing key is not an error."""
        ...

    def keys(self) -> list[str]:
        ...


class DocumentStore(Protocol):
    """
    Minimal interface the feature code depends on: JSON documents under string keys.
    """

    def load(self, key: str, default: T) -> T:
        """Return the stored document, or default when absent or unreadable."""
        ...

    def save(self, key: str, value: Any) -> bool:
        """Persist value under key (full overwrite). False on failure."""
        ...

    def export_bundle(self) -> dict[str, Any]:
        ...

    def import_data(self, json_text: str) -> bool:
        ...

    def on_change(
        self,
        callback: Callable[["StorageEvent"], None],
        *,
        key: str | None = None,
        include_own: bool = False,
    ) -> Callable[[], None]:
        ...
