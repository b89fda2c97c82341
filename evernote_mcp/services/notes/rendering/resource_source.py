"""
In-memory ResourceSource implementation.

Holds the resource metadata of a single note, keyed by lowercase hash hex, so
the converters can answer "which mime type / filename does this hash have?".

Population is performed by feeding `KnownResource` values (or note-store
payloads) into `add`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Optional, Union

from ..models.dto import KnownResource
from ..models.payloads import ResourcePayload
from .renderer_iface import ResourceSource

LOGGER = logging.getLogger(__name__)


@dataclass
class InMemoryResourceSource(ResourceSource):
    _by_hash: Dict[str, KnownResource] = field(default_factory=dict)

    @classmethod
    def from_resources(
        cls,
        resources: Optional[Iterable[Union[KnownResource, ResourcePayload, dict]]],
    ) -> "InMemoryResourceSource":
        src = cls()
        for res in resources or ():
            src.add(res)
        return src

    def get(self, hash_hex: str) -> Optional[KnownResource]:
        if not hash_hex:
            return None
        return self._by_hash.get(hash_hex.lower())

    def __iter__(self) -> Iterator[KnownResource]:
        return iter(self._by_hash.values())

    def __len__(self) -> int:
        return len(self._by_hash)

    def __contains__(self, hash_hex: object) -> bool:
        return isinstance(hash_hex, str) and hash_hex.lower() in self._by_hash

    def add(self, resource: Union[KnownResource, ResourcePayload, dict]) -> None:
        if isinstance(resource, dict):
            resource = ResourcePayload.model_validate(resource)
        if isinstance(resource, ResourcePayload):
            resource = resource.to_known_resource()
        # First-seen metadata wins for a given hash
        if resource.hash_hex in self._by_hash:
            LOGGER.debug("notes.resources.duplicate hash=%s", resource.hash_hex)
            return
        self._by_hash[resource.hash_hex] = resource
