# evernote_mcp/services/notes/domain.py
from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from typing import Union

from evernote_mcp.exceptions import InvalidContentHashError

_HEX_RE = re.compile(r"^[0-9a-fA-F]{32}$")


@dataclass(frozen=True)
class ContentHash:
    """MD5 digest of a resource body; the identity Evernote uses for resources."""

    digest: bytes

    def __post_init__(self) -> None:
        if len(self.digest) != 16:
            raise InvalidContentHashError(
                f"Content hash must be 16 bytes, got {len(self.digest)}"
            )

    @classmethod
    def of(cls, data: Union[bytes, bytearray, memoryview]) -> "ContentHash":
        return cls(hashlib.md5(bytes(data)).digest())

    @classmethod
    def from_hex(cls, value: str) -> "ContentHash":
        if not isinstance(value, str) or not _HEX_RE.match(value.strip()):
            raise InvalidContentHashError(f"Not a 32-character hex digest: {value!r}")
        return cls(bytes.fromhex(value.strip()))

    @classmethod
    def coerce(cls, value: Union["ContentHash", str, bytes]) -> "ContentHash":
        if isinstance(value, ContentHash):
            return value
        if isinstance(value, str):
            return cls.from_hex(value)
        return cls(bytes(value))

    @property
    def hex(self) -> str:
        return self.digest.hex()

    def __str__(self) -> str:
        return self.hex


def is_hex_digest(value: str) -> bool:
    return bool(value) and bool(_HEX_RE.match(value))
