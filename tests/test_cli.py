import json
import os
import tempfile
import unittest

from typer.testing import CliRunner

from evernote_mcp.cli.main import app

HELLO_MD5 = "5d41402abc4b2a76b9719d911017c592"

RECO = (
    '<recoIndex><item x="1" y="2" w="3" h="4"><t w="90">Hello</t></item>'
    '<item x="5" y="6" w="7" h="8"><t w="80">World</t></item></recoIndex>'
)


class CliTest(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, name, content):
        path = os.path.join(self.tmp, name)
        mode = "wb" if isinstance(content, bytes) else "w"
        with open(path, mode) as f:
            f.write(content)
        return path

    def test_to_enml(self):
        self._write("pic.png", b"hello")
        md = self._write("note.md", "# Title\n\n![pic](pic.png)\n")
        result = self.runner.invoke(app, ["notes", "to-enml", md])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("<h1>Title</h1>", result.output)
        self.assertIn(HELLO_MD5, result.output)

    def test_to_enml_json_full_document(self):
        md = self._write("note.md", "hello")
        result = self.runner.invoke(
            app, ["notes", "to-enml", md, "--json", "--full-document"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.stdout)
        self.assertTrue(payload["enml"].startswith("<?xml"))
        self.assertEqual(payload["attachments"], [])

    def test_to_markdown_with_resources(self):
        enml = self._write(
            "note.enml",
            f'<en-note><h1>T</h1><en-media type="image/png" hash="{HELLO_MD5}"/></en-note>',
        )
        resources = self._write(
            "resources.json",
            json.dumps([{"hash": HELLO_MD5, "mime": "image/png", "attributes": {"fileName": "p.png"}}]),
        )
        result = self.runner.invoke(
            app, ["notes", "to-markdown", enml, "--resources", resources]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("# T", result.output)
        self.assertIn(f"![p.png](resource:{HELLO_MD5})", result.output)

    def test_to_markdown_note_json(self):
        note = self._write("note.json", json.dumps({"content": "<en-note><div>hi</div></en-note>"}))
        result = self.runner.invoke(app, ["notes", "to-markdown", note])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("hi", result.output)

    def test_patch(self):
        enml = self._write("note.enml", "<en-note><div>Status: Pending</div></en-note>")
        result = self.runner.invoke(
            app,
            ["notes", "patch", enml, "--find", "Pending", "--replace", "Complete"],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Status: Complete", result.output)

    def test_patch_from_replacements_file(self):
        enml = self._write("note.enml", "<en-note><div>a a</div></en-note>")
        rules = self._write(
            "rules.json", json.dumps([{"find": "a", "replace": "b", "replaceAll": True}])
        )
        result = self.runner.invoke(app, ["notes", "patch", enml, "--replacements", rules])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("<p>b b</p>", result.output)

    def test_patch_no_match(self):
        enml = self._write("note.enml", "<en-note><div>text</div></en-note>")
        result = self.runner.invoke(app, ["notes", "patch", enml, "--find", "missing"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Not applied", result.output)

    def test_patch_requires_rule(self):
        enml = self._write("note.enml", "<en-note>x</en-note>")
        result = self.runner.invoke(app, ["notes", "patch", enml])
        self.assertNotEqual(result.exit_code, 0)

    def test_preview(self):
        enml = self._write("note.enml", "<en-note><div>The quick brown fox</div></en-note>")
        result = self.runner.invoke(app, ["notes", "preview", enml, "--length", "9"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("The quick...", result.output)

    def test_missing_file(self):
        result = self.runner.invoke(
            app, ["notes", "to-markdown", os.path.join(self.tmp, "nope.enml")]
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)

    def test_resources_hash(self):
        path = self._write("pic.png", b"hello")
        result = self.runner.invoke(app, ["resources", "hash", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(HELLO_MD5, result.output)
        self.assertIn("image/png", result.output)

    def test_resources_recognition(self):
        path = self._write("reco.xml", RECO)
        result = self.runner.invoke(app, ["resources", "recognition", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Hello World", result.output)

    def test_verbose_flag(self):
        md = self._write("note.md", "text")
        result = self.runner.invoke(app, ["--verbose", "notes", "to-enml", md])
        self.assertEqual(result.exit_code, 0, result.output)


if __name__ == "__main__":
    unittest.main()
