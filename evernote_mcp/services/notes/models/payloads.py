"""
Note-store "wire" models for the payloads the tool layer hands to this package.

The note store client serializes Evernote Thrift objects to JSON; resource
hashes arrive in several shapes depending on the client:
  - a hex string,
  - a base64 string,
  - a Node ``Buffer`` dump ({"type": "Buffer", "data": [..ints..]}).
All are normalized to lowercase hex here.
"""

from __future__ import annotations

import base64
import binascii
from typing import Annotated, Any, List, Optional

from pydantic import BeforeValidator, Field, model_validator

from ..domain import ContentHash, is_hex_digest
from ._base import ENModel
from .dto import KnownResource, Replacement


def _normalize_hash(v: Any) -> Optional[str]:
    if v is None or v == "":
        return None
    if isinstance(v, dict) and isinstance(v.get("data"), list):
        v = bytes(v["data"])
    if isinstance(v, (bytes, bytearray)):
        return ContentHash(bytes(v)).hex
    if isinstance(v, str):
        s = v.strip()
        if is_hex_digest(s):
            return s.lower()
        try:
            raw = base64.b64decode(s, validate=True)
        except binascii.Error:
            raise ValueError(f"Unrecognized resource hash: {v!r}")
        return ContentHash(raw).hex
    raise TypeError("Expected hex/base64 string, bytes or Buffer dump for hash")


HashHex = Annotated[Optional[str], BeforeValidator(_normalize_hash)]


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class ResourceAttributesPayload(ENModel):
    fileName: Optional[str] = None
    sourceURL: Optional[str] = None


class DataPayload(ENModel):
    bodyHash: HashHex = None
    size: Optional[int] = None


class ResourcePayload(ENModel):
    """A ``Types.Resource`` as seen by the tool layer (body bytes omitted)."""

    guid: Optional[str] = None
    hash: HashHex = None
    mime: Optional[str] = None
    data: Optional[DataPayload] = None
    attributes: Optional[ResourceAttributesPayload] = None

    @model_validator(mode="after")
    def _require_hash(self) -> "ResourcePayload":
        if self.hash_hex is None:
            raise ValueError("Resource payload carries neither 'hash' nor 'data.bodyHash'")
        return self

    @property
    def hash_hex(self) -> Optional[str]:
        if self.hash:
            return self.hash
        if self.data is not None and self.data.bodyHash:
            return self.data.bodyHash
        return None

    def to_known_resource(self) -> KnownResource:
        attrs = self.attributes
        return KnownResource(
            hash_hex=self.hash_hex or "",
            mime_type=self.mime,
            filename=attrs.fileName if attrs else None,
            source_url=attrs.sourceURL if attrs else None,
        )


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class NotePayload(ENModel):
    guid: Optional[str] = None
    title: Optional[str] = None
    content: str = ""
    notebookGuid: Optional[str] = None
    tagNames: Optional[List[str]] = None
    resources: List[ResourcePayload] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _null_resources(cls, data: Any) -> Any:
        # Thrift clients send null instead of an empty list
        if isinstance(data, dict) and data.get("resources") is None:
            data = {**data, "resources": []}
        return data

    def known_resources(self) -> List[KnownResource]:
        return [r.to_known_resource() for r in self.resources]


class ReplacementPayload(ENModel):
    find: str = Field(min_length=1)
    replace: str = ""
    replaceAll: bool = False

    def to_replacement(self) -> Replacement:
        return Replacement(find=self.find, replace=self.replace, replace_all=self.replaceAll)


__all__ = [
    "DataPayload",
    "NotePayload",
    "ReplacementPayload",
    "ResourceAttributesPayload",
    "ResourcePayload",
]
