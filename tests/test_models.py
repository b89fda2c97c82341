import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from evernote_mcp.exceptions import InvalidReplacementError
from evernote_mcp.services.notes.models import (
    KnownResource,
    NotePayload,
    Replacement,
    ReplacementPayload,
    ResourcePayload,
)
from evernote_mcp.services.notes.models._base import _env_extra_mode
from evernote_mcp.services.notes.rendering.resource_source import (
    InMemoryResourceSource,
)

EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"
EMPTY_MD5_B64 = "1B2M2Y8AsgTpgAmY7PhCfg=="
EMPTY_MD5_BYTES = [212, 29, 140, 217, 143, 0, 178, 4, 233, 128, 9, 152, 236, 248, 66, 126]
HELLO_MD5 = "5d41402abc4b2a76b9719d911017c592"


class ResourcePayloadTest(unittest.TestCase):
    def test_hash_shapes(self):
        for value in (EMPTY_MD5, EMPTY_MD5.upper(), EMPTY_MD5_B64, {"type": "Buffer", "data": EMPTY_MD5_BYTES}):
            res = ResourcePayload.model_validate({"hash": value, "mime": "image/png"})
            self.assertEqual(res.hash_hex, EMPTY_MD5, value)

    def test_hash_from_data_block(self):
        res = ResourcePayload.model_validate(
            {
                "guid": "r1",
                "mime": "application/pdf",
                "data": {"bodyHash": EMPTY_MD5_B64, "size": 0},
                "attributes": {"fileName": "a.pdf", "sourceURL": "https://x"},
            }
        )
        known = res.to_known_resource()
        self.assertEqual(known, KnownResource(EMPTY_MD5, "application/pdf", "a.pdf", "https://x"))

    def test_missing_or_bad_hash(self):
        with self.assertRaises(ValidationError):
            ResourcePayload.model_validate({"mime": "image/png"})
        with self.assertRaises(ValidationError):
            ResourcePayload.model_validate({"hash": "not a hash!"})

    def test_extra_fields_ignored_by_default(self):
        res = ResourcePayload.model_validate({"hash": EMPTY_MD5, "width": 10, "recognition": None})
        self.assertEqual(res.hash_hex, EMPTY_MD5)


class NotePayloadTest(unittest.TestCase):
    def test_null_resources(self):
        note = NotePayload.model_validate({"guid": "n1", "content": "<en-note/>", "resources": None})
        self.assertEqual(note.resources, [])
        self.assertEqual(note.known_resources(), [])

    def test_known_resources(self):
        note = NotePayload.model_validate(
            {"content": "", "resources": [{"hash": HELLO_MD5, "mime": "image/png"}]}
        )
        [known] = note.known_resources()
        self.assertEqual(known.hash_hex, HELLO_MD5)
        self.assertEqual(known.mime_type, "image/png")


class ReplacementModelsTest(unittest.TestCase):
    def test_payload_to_replacement(self):
        rule = ReplacementPayload.model_validate({"find": "a", "replaceAll": True}).to_replacement()
        self.assertEqual(rule, Replacement("a", "", True))

    def test_empty_find_rejected(self):
        with self.assertRaises(ValidationError):
            ReplacementPayload.model_validate({"find": ""})
        with self.assertRaises(InvalidReplacementError):
            Replacement("")


class ExtraModeTest(unittest.TestCase):
    def test_env_values(self):
        cases = {
            "forbid": "forbid",
            "ALLOW": "allow",
            "true": "forbid",
            "off": "allow",
            "bogus": "ignore",
        }
        for raw, expected in cases.items():
            with patch.dict(os.environ, {"EVERNOTE_MCP_EXTRA": raw}):
                self.assertEqual(_env_extra_mode(), expected, raw)

    def test_default(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(_env_extra_mode(), "ignore")


class ResourceSourceTest(unittest.TestCase):
    def test_first_seen_wins(self):
        src = InMemoryResourceSource.from_resources(
            [
                KnownResource(HELLO_MD5, "image/png", "first.png"),
                {"hash": HELLO_MD5.upper(), "mime": "image/jpeg"},
            ]
        )
        self.assertEqual(len(src), 1)
        self.assertEqual(src.get(HELLO_MD5.upper()).filename, "first.png")
        self.assertIn(HELLO_MD5, src)
        self.assertIsNone(src.get(EMPTY_MD5))
        self.assertIsNone(src.get(""))


if __name__ == "__main__":
    unittest.main()
