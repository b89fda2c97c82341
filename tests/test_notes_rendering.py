import os
import re
import tempfile
import unittest

from bs4 import BeautifulSoup

from evernote_mcp.services.notes.decoding import (
    BodyDecoder,
    unwrap_enml,
    wrap_enml,
)
from evernote_mcp.services.notes.models import KnownResource
from evernote_mcp.services.notes.rendering.exporter import enml_to_markdown
from evernote_mcp.services.notes.rendering.options import (
    ENML_ALLOWED_TAGS,
    ConversionConfig,
)
from evernote_mcp.services.notes.rendering.renderer import (
    preprocess_task_lists,
    render_markdown_to_enml,
)

HELLO_MD5 = "5d41402abc4b2a76b9719d911017c592"
ABC_MD5 = "900150983cd24fb0d6963f7d28e17f72"
EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"


class TaskListPreprocessTest(unittest.TestCase):
    def test_markers(self):
        md = "- [ ] open\n* [x] done\n  + [X] nested\n1. [ ] numbered"
        out = preprocess_task_lists(md).split("\n")
        self.assertEqual(out[0], "- <en-todo/> open")
        self.assertEqual(out[1], '* <en-todo checked="true"/> done')
        self.assertEqual(out[2], '  + <en-todo checked="true"/> nested')
        self.assertEqual(out[3], "1. <en-todo/> numbered")

    def test_fenced_code_untouched(self):
        md = "```\n- [ ] not a task\n```\n- [ ] task"
        out = preprocess_task_lists(md)
        self.assertIn("- [ ] not a task", out)
        self.assertIn("- <en-todo/> task", out)

    def test_plain_brackets_untouched(self):
        self.assertEqual(preprocess_task_lists("[ ] not a list"), "[ ] not a list")
        self.assertEqual(preprocess_task_lists("- [link](x)"), "- [link](x)")


class MarkdownToEnmlTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name
        with open(os.path.join(self.tmp, "pic.png"), "wb") as f:
            f.write(b"hello")

    def tearDown(self):
        self._tmp.cleanup()

    def _tags(self, enml):
        return set(re.findall(r"</?([a-zA-Z][\w-]*)", enml))

    def test_basic_formatting(self):
        result = render_markdown_to_enml(
            "# Title\n\nSome **bold**, *em*, `code` and ~~gone~~."
        )
        self.assertIn("<h1>Title</h1>", result.enml)
        self.assertIn("<strong>bold</strong>", result.enml)
        self.assertIn("<em>em</em>", result.enml)
        self.assertIn("<code>code</code>", result.enml)
        self.assertIn("<s>gone</s>", result.enml)
        self.assertEqual(result.attachments, [])

    def test_task_list(self):
        enml = render_markdown_to_enml("- [ ] open\n- [x] done").enml
        self.assertIn("<en-todo/> open", enml)
        self.assertIn('<en-todo checked="true"/> done', enml)
        self.assertNotIn("input", enml)

    def test_fenced_code_language_dropped(self):
        enml = render_markdown_to_enml('```python\nprint("hi")\n```').enml
        self.assertIn('<pre><code>print("hi")', enml)
        self.assertNotIn("language-", enml)

    def test_table_alignment(self):
        enml = render_markdown_to_enml("| a | b |\n|---|---:|\n| 1 | 2 |").enml
        self.assertIn("<table>", enml)
        self.assertIn("<th>a</th>", enml)
        self.assertIn('<td align="right">2</td>', enml)
        self.assertNotIn("style", enml)

    def test_soft_breaks(self):
        enml = render_markdown_to_enml("line one\nline two").enml
        self.assertIn("line one<br/>", enml)
        enml = render_markdown_to_enml(
            "line one\nline two", config=ConversionConfig(breaks=False)
        ).enml
        self.assertNotIn("<br/>", enml)

    def test_unsafe_markup_removed(self):
        enml = render_markdown_to_enml(
            "<script>alert(1)</script>\n\ntext [x](javascript:alert(1)) "
            '<span onclick="x()">s</span>'
        ).enml
        self.assertNotIn("<script", enml)
        self.assertNotIn("alert(1)</", enml)
        self.assertNotIn('href="javascript', enml)
        self.assertNotIn("onclick", enml)
        self.assertIn("text", enml)

    def test_output_tags_allowed(self):
        md = (
            "# H\n\n> quote\n\n1. one\n2. two\n\n---\n\n"
            "<details><summary>s</summary>body</details>\n\n![r](https://e.x/a.png)"
        )
        enml = render_markdown_to_enml(md).enml
        self.assertTrue(self._tags(enml) <= ENML_ALLOWED_TAGS, self._tags(enml))

    def test_local_image_becomes_new_attachment(self):
        result = render_markdown_to_enml("![A pic](pic.png)", base_dir=self.tmp)
        self.assertIn("<en-media", result.enml)
        self.assertIn(f'hash="{HELLO_MD5}"', result.enml)
        self.assertIn('type="image/png"', result.enml)
        self.assertIn('alt="A pic"', result.enml)
        [att] = result.attachments
        self.assertTrue(att.is_new)
        self.assertEqual(att.data, b"hello")
        self.assertEqual(result.new_attachments, [att])
        self.assertEqual(result.existing_attachments, [])

    def test_duplicate_image_single_attachment(self):
        result = render_markdown_to_enml(
            "![one](pic.png)\n\n![two](./pic.png)", base_dir=self.tmp
        )
        self.assertEqual(result.enml.count("<en-media"), 2)
        self.assertEqual(len(result.attachments), 1)

    def test_remote_image_becomes_link(self):
        result = render_markdown_to_enml("![remote](http://example.com/a.png)")
        self.assertIn('<a href="http://example.com/a.png">remote</a>', result.enml)
        self.assertNotIn("en-media", result.enml)
        self.assertEqual(result.attachments, [])

    def test_missing_local_image_keeps_label(self):
        result = render_markdown_to_enml("![gone](nothing.png)", base_dir=self.tmp)
        self.assertIn("gone", result.enml)
        self.assertEqual(result.attachments, [])

    def test_existing_resources(self):
        existing = [
            KnownResource(HELLO_MD5, "image/png", "photo.png"),
            KnownResource(ABC_MD5, "application/pdf", "report.pdf"),
            KnownResource(EMPTY_MD5, "text/plain", "unused.txt"),
        ]
        result = render_markdown_to_enml(
            f"![photo](resource:{HELLO_MD5})\n\n[the report](resource:{ABC_MD5})",
            existing=existing,
        )
        media = [
            (m["type"], m["hash"])
            for m in BeautifulSoup(result.enml, "html.parser").find_all("en-media")
        ]
        self.assertEqual(media, [("image/png", HELLO_MD5), ("application/pdf", ABC_MD5)])
        self.assertEqual([a.hash_hex for a in result.attachments], [HELLO_MD5, ABC_MD5])
        self.assertTrue(all(not a.is_new for a in result.attachments))

    def test_existing_resources_as_payload_dicts(self):
        result = render_markdown_to_enml(
            f"![p](resource:{HELLO_MD5.upper()})",
            existing=[{"hash": HELLO_MD5, "mime": "image/gif"}],
        )
        self.assertIn('type="image/gif"', result.enml)

    def test_file_link_resolves_like_image(self):
        path = os.path.join(self.tmp, "pic.png")
        result = render_markdown_to_enml(f"[attached](file://{path})")
        self.assertIn(f'hash="{HELLO_MD5}"', result.enml)

    def test_document_envelope(self):
        result = render_markdown_to_enml("hi")
        self.assertTrue(result.document.startswith('<?xml version="1.0" encoding="UTF-8"?>'))
        self.assertIn("enml2.dtd", result.document)
        self.assertTrue(result.document.endswith("<en-note><p>hi</p></en-note>"))

    def test_empty_markdown(self):
        result = render_markdown_to_enml("")
        self.assertEqual(result.enml, "")
        self.assertEqual(result.attachments, [])


class EnmlToMarkdownTest(unittest.TestCase):
    def test_declarations_and_root_removed(self):
        md = enml_to_markdown(wrap_enml("<h1>Title</h1><div>Hello <b>world</b></div>"))
        self.assertTrue(md.startswith("# Title"))
        self.assertIn("Hello **world**", md)
        self.assertNotIn("en-note", md)
        self.assertNotIn("DOCTYPE", md)

    def test_todos(self):
        md = enml_to_markdown(
            '<en-note><div><en-todo checked="true"/>Done</div>'
            "<div><en-todo/>Open</div>"
            '<div><en-todo checked="false"/>Also open</div></en-note>'
        )
        self.assertIn("- [x] Done", md)
        self.assertIn("- [ ] Open", md)
        self.assertIn("- [ ] Also open", md)

    def test_todos_in_lists(self):
        md = enml_to_markdown(
            '<en-note><ul><li><en-todo checked="true"/> a</li><li><en-todo/> b</li></ul></en-note>'
        )
        self.assertIn("- [x] a", md)
        self.assertIn("- [ ] b", md)

    def test_image_media_with_known_resource(self):
        md = enml_to_markdown(
            f'<en-note><div><en-media type="image/png" hash="{HELLO_MD5.upper()}"/></div></en-note>',
            [KnownResource(HELLO_MD5, "image/png", "photo.png")],
        )
        self.assertEqual(md, f"![photo.png](resource:{HELLO_MD5})")

    def test_image_media_alt_attribute_wins(self):
        md = enml_to_markdown(
            f'<en-note><en-media type="image/png" hash="{HELLO_MD5}" alt="Sunset"/></en-note>',
            [KnownResource(HELLO_MD5, "image/png", "photo.png")],
        )
        self.assertIn(f"![Sunset](resource:{HELLO_MD5})", md)

    def test_file_media_becomes_link(self):
        md = enml_to_markdown(
            f'<en-note><div><en-media type="application/pdf" hash="{ABC_MD5}"/></div></en-note>',
            [KnownResource(ABC_MD5, "application/pdf", "report.pdf")],
        )
        self.assertIn(f"[report.pdf](resource:{ABC_MD5})", md)

    def test_unknown_media_still_referenced(self):
        md = enml_to_markdown(
            f'<en-note><en-media type="image/jpeg" hash="{EMPTY_MD5}"/></en-note>'
        )
        self.assertIn(f"![{EMPTY_MD5}](resource:{EMPTY_MD5})", md)

    def test_media_mime_from_known_resource(self):
        md = enml_to_markdown(
            f'<en-note><en-media hash="{HELLO_MD5}"/></en-note>',
            [{"hash": HELLO_MD5, "mime": "image/png"}],
        )
        self.assertIn(f"](resource:{HELLO_MD5})", md)
        self.assertTrue(md.startswith("!["))

    def test_intraword_underscores_unescaped(self):
        md = enml_to_markdown("<en-note><div>snake_case, _emph_ and a*b</div></en-note>")
        self.assertIn("snake_case", md)
        self.assertIn(r"\_emph\_", md)
        self.assertIn(r"a\*b", md)

    def test_blank_lines_collapsed(self):
        md = enml_to_markdown("<en-note><div>a</div><div></div><div></div><div>b</div></en-note>")
        self.assertNotIn("\n\n\n", md)
        self.assertEqual(md, md.strip())

    def test_empty(self):
        self.assertEqual(enml_to_markdown(""), "")
        self.assertEqual(enml_to_markdown(None), "")
        self.assertEqual(enml_to_markdown("<en-note/>"), "")


class RoundTripTest(unittest.TestCase):
    def _round_trip(self, markdown):
        return enml_to_markdown(render_markdown_to_enml(markdown).enml)

    def test_headings(self):
        md = self._round_trip("# One\n\n## Two\n\ntext")
        self.assertIn("# One", md)
        self.assertIn("## Two", md)

    def test_lists_and_emphasis(self):
        md = self._round_trip("Intro with **bold** and *em*\n\n- one\n- two")
        self.assertIn("**bold**", md)
        self.assertIn("*em*", md)
        self.assertIn("- one", md)
        self.assertIn("- two", md)

    def test_task_states(self):
        md = self._round_trip("- [ ] open\n- [x] done")
        self.assertIn("- [ ] open", md)
        self.assertIn("- [x] done", md)

    def test_fenced_code(self):
        md = self._round_trip('```\nprint("hi")\n```')
        self.assertIn('```\nprint("hi")\n```', md)

    def test_fenced_code_containing_fence(self):
        md = self._round_trip("````\n```\ninner\n```\n````")
        self.assertEqual(md, "````\n```\ninner\n```\n````")

    def test_table(self):
        md = self._round_trip("| a | b |\n|---|---|\n| 1 | 2 |")
        self.assertIn("| a | b |", md)
        self.assertIn("| --- | --- |", md)
        self.assertIn("| 1 | 2 |", md)

    def test_table_alignment(self):
        md = self._round_trip("| a | b | c |\n|:--|--:|:-:|\n| 1 | 2 | 3 |")
        self.assertIn("| a | b | c |", md)
        self.assertIn("| :--- | ---: | :---: |", md)
        self.assertIn("| 1 | 2 | 3 |", md)
        self.assertIn('<td align="right">2</td>', render_markdown_to_enml(md).enml)

    def test_existing_image(self):
        existing = [KnownResource(HELLO_MD5, "image/png", "photo.png")]
        result = render_markdown_to_enml(f"![photo](resource:{HELLO_MD5})", existing=existing)
        md = enml_to_markdown(result.enml, existing)
        self.assertIn(f"![photo](resource:{HELLO_MD5})", md)


class BodyDecoderTest(unittest.TestCase):
    def test_unwrap(self):
        doc = wrap_enml("<div>x</div>")
        self.assertEqual(unwrap_enml(doc), "<div>x</div>")
        self.assertEqual(BodyDecoder().decode(doc), "<div>x</div>")
        self.assertEqual(BodyDecoder().encode("<div>x</div>"), doc)

    def test_fragment_passthrough(self):
        self.assertEqual(unwrap_enml("<div>x</div>"), "<div>x</div>")
        self.assertEqual(unwrap_enml('<en-note style="a">y</en-note>'), "y")
        self.assertEqual(unwrap_enml(None), "")


if __name__ == "__main__":
    unittest.main()
