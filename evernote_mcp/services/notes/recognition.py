"""
Parsing of Evernote resource recognition data (``recoIndex`` XML).

Evernote runs OCR over image resources and stores the result as::

    <recoIndex objType="image" ...>
      <item x="50" y="100" w="200" h="30">
        <t w="95">Hello</t>
        <t w="80">Helio</t>
      </item>
    </recoIndex>

Each ``item`` is a region of the image; each ``t`` is a candidate reading with
a confidence weight (0-100), best first.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class Alternative:
    text: str
    confidence: int


@dataclass(frozen=True)
class RecognitionItem:
    bounding_box: BoundingBox
    alternatives: List[Alternative] = field(default_factory=list)

    @property
    def best(self) -> Optional[Alternative]:
        return self.alternatives[0] if self.alternatives else None


def _int(value: Optional[str]) -> int:
    try:
        return int(value or 0)
    except ValueError:
        return 0


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_recognition_xml(xml: Union[str, bytes, None]) -> List[RecognitionItem]:
    """Return the recognized regions in document order; [] when there are none."""
    if not xml:
        return []
    data = xml.encode("utf-8") if isinstance(xml, str) else bytes(xml)
    data = data.strip()
    if not data:
        return []
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        LOGGER.warning("notes.recognition.parse_failed err=%s", e)
        return []

    items: List[RecognitionItem] = []
    for el in root.iter():
        if _local_name(el.tag) != "item":
            continue
        box = BoundingBox(
            x=_int(el.get("x")),
            y=_int(el.get("y")),
            width=_int(el.get("w")),
            height=_int(el.get("h")),
        )
        alternatives = [
            Alternative(text=t.text or "", confidence=_int(t.get("w")))
            for t in el
            if _local_name(t.tag) == "t"
        ]
        items.append(RecognitionItem(bounding_box=box, alternatives=alternatives))
    LOGGER.debug("notes.recognition.parsed items=%d", len(items))
    return items


def best_text(items: Iterable[RecognitionItem]) -> str:
    """Join the top-ranked reading of every region with single spaces."""
    return " ".join(item.best.text for item in items if item.best and item.best.text)
