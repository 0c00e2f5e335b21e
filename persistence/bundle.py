from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

BUNDLE_META_KEY = "__meta__"
BUNDLE_FORMAT_VERSION = 1


class BundleError(ValueError):
    """Raised when an import payload is not a plausible exported bundle."""


class BundleMetadata(BaseModel):
    """
    Bundle-level metadata stored under "__meta__":
      { "app": "ascend-media", "formatVersion": 1, "exportedAt": "<ISO-8601>" }
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    app: str | None = None
    format_version: int = Field(default=BUNDLE_FORMAT_VERSION, alias="formatVersion", ge=1)
    exported_at: datetime | None = Field(default=None, alias="exportedAt")

    def to_bundle_doc(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def build_bundle(documents: Mapping[str, Any], *, app: str, exported_at: datetime) -> dict[str, Any]:
    meta = BundleMetadata(app=app, format_version=BUNDLE_FORMAT_VERSION, exported_at=exported_at)
    bundle: dict[str, Any] = {BUNDLE_META_KEY: meta.to_bundle_doc()}
    for key in sorted(documents):
        bundle[key] = documents[key]
    return bundle


def split_bundle(payload: Any) -> tuple[BundleMetadata | None, dict[str, Any]]:
    """
    Validate a parsed bundle and separate its metadata from its documents.

    Bundles without "__meta__" (plain key -> value exports) are accepted.
    """
    if not isinstance(payload, dict):
        raise BundleError(f"bundle must be a JSON object, got {type(payload).__name__}")

    documents = dict(payload)
    meta: BundleMetadata | None = None
    if BUNDLE_META_KEY in documents:
        raw_meta = documents.pop(BUNDLE_META_KEY)
        if not isinstance(raw_meta, dict):
            raise BundleError("bundle metadata must be an object")
        try:
            meta = BundleMetadata.model_validate(raw_meta)
        except ValidationError as e:
            raise BundleError(f"invalid bundle metadata: {e.error_count()} error(s)") from e
        if meta.format_version > BUNDLE_FORMAT_VERSION:
            raise BundleError(
                f"bundle format {meta.format_version} is newer than supported {BUNDLE_FORMAT_VERSION}"
            )

    for key in documents:
        if not key.strip():
            raise BundleError("bundle contains an empty document key")
    return meta, documents
