"""
Pure renderer for Markdown → ENML.

Pipeline (no network I/O; local files are only read for image attachments):
  1. task-list lines become ``<en-todo/>`` markers,
  2. markdown-it-py renders HTML; image targets, plus links to
     ``resource:``/``file:`` URLs, are routed through the AttachmentResolver,
  3. the EnmlSanitizer reduces the HTML to the ENML allow-list.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Union

from markdown_it import MarkdownIt
from markdown_it.token import Token
from rich.console import Console

from ..models.dto import ConversionResult, KnownResource
from ..models.payloads import ResourcePayload
from .attachments import AttachmentRegistry, AttachmentResolver
from .options import ConversionConfig
from .resource_source import InMemoryResourceSource
from .sanitizer import EnmlSanitizer

console = Console()

LOGGER = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s{0,3}(`{3,}|~{3,})")
_TASK_RE = re.compile(r"^(\s*(?:[-*+]|\d+[.)])\s+)\[([ xX])\](?:[ \t]+|$)")
_BLOCKED_LINK_RE = re.compile(r"^(?:javascript|vbscript):", re.IGNORECASE)
_DATA_URL_RE = re.compile(r"^data:", re.IGNORECASE)
_DATA_IMAGE_RE = re.compile(r"^data:image/(?:gif|png|jpeg|webp);", re.IGNORECASE)
_RESOURCE_LINK_RE = re.compile(r"^(?:(?:evernote-)?resource|file):", re.IGNORECASE)

ExistingResources = Optional[Iterable[Union[KnownResource, ResourcePayload, dict]]]


def preprocess_task_lists(markdown: str) -> str:
    """Turn ``- [ ]`` / ``- [x]`` list items into ``<en-todo>`` markers.

    Lines inside fenced code blocks are left untouched.
    """
    out: List[str] = []
    fence: Optional[str] = None
    for line in markdown.split("\n"):
        m = _FENCE_RE.match(line)
        if m:
            marker = m.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
            out.append(line)
            continue
        if fence is None:
            line = _TASK_RE.sub(_task_marker, line, count=1)
        out.append(line)
    return "\n".join(out)


def _task_marker(m: "re.Match[str]") -> str:
    if m.group(2) in "xX":
        return f'{m.group(1)}<en-todo checked="true"/> '
    return f"{m.group(1)}<en-todo/> "


def _validate_link(url: str) -> bool:
    # file: targets are local attachments, not navigation.
    url = url.strip()
    if _BLOCKED_LINK_RE.match(url):
        return False
    if _DATA_URL_RE.match(url):
        return bool(_DATA_IMAGE_RE.match(url))
    return True


def _fold_resource_links(state) -> None:
    """Rewrite ``[label](resource:...)`` / ``[label](file:...)`` into image tokens."""
    for block in state.tokens:
        if block.type != "inline" or not block.children:
            continue
        children: List[Token] = []
        tokens = block.children
        i = 0
        while i < len(tokens):
            tok = tokens[i]
            href = tok.attrGet("href") if tok.type == "link_open" else None
            if not href or not _RESOURCE_LINK_RE.match(str(href)):
                children.append(tok)
                i += 1
                continue
            depth = 1
            j = i + 1
            while j < len(tokens):
                if tokens[j].type == "link_open":
                    depth += 1
                elif tokens[j].type == "link_close":
                    depth -= 1
                    if depth == 0:
                        break
                j += 1
            inner = tokens[i + 1 : j]
            image = Token("image", "img", 0)
            image.attrs = {"src": str(href), "alt": ""}
            title = tok.attrGet("title")
            if title:
                image.attrSet("title", title)
            image.children = inner
            image.content = "".join(t.content for t in inner if t.type == "text")
            children.append(image)
            i = j + 1
        block.children = children


def _render_image(self, tokens, idx, options, env) -> str:
    token = tokens[idx]
    resolver: Optional[AttachmentResolver] = (env or {}).get("resolver")
    alt = self.renderInlineAsText(token.children or [], options, env)
    src = token.attrGet("src")
    title = token.attrGet("title")
    if resolver is None:
        LOGGER.debug("notes.render.image_without_resolver src=%s", src)
        return AttachmentResolver.render_link(str(src or ""), alt, title)
    return resolver.resolve(str(src) if src else "", alt, str(title) if title else None)


class MarkdownRenderer:
    """Markdown → ENML body converter; one instance may serve many calls."""

    def __init__(self, config: Optional[ConversionConfig] = None):
        self.config = config or ConversionConfig()
        self._sanitizer = EnmlSanitizer(self.config)
        self._md = self._build_parser()

    def _build_parser(self) -> MarkdownIt:
        md = MarkdownIt("commonmark", {"breaks": self.config.breaks})
        md.enable(["table", "strikethrough"])
        md.validateLink = _validate_link
        md.core.ruler.push("resource_links", _fold_resource_links)
        md.add_render_rule("image", _render_image)
        return md

    def render_html(self, markdown: str, resolver: AttachmentResolver) -> str:
        """Intermediate (unsanitized) HTML for ``markdown``."""
        return self._md.render(preprocess_task_lists(markdown), {"resolver": resolver})

    def render(
        self,
        markdown: str,
        existing: ExistingResources = None,
        base_dir: Optional[str] = None,
    ) -> ConversionResult:
        source = InMemoryResourceSource.from_resources(existing)
        registry = AttachmentRegistry()
        resolver = AttachmentResolver(registry, source, self.config, base_dir)

        html = self.render_html(markdown or "", resolver)
        if self.config.debug:
            console.rule("markdown-it html")
            console.print(html, markup=False, highlight=False)

        enml = self._sanitizer.sanitize(html)
        attachments = registry.list()
        LOGGER.info(
            "notes.render.done md=%d enml=%d attachments=%d new=%d",
            len(markdown or ""),
            len(enml),
            len(attachments),
            sum(1 for a in attachments if a.is_new),
        )
        return ConversionResult(enml=enml, attachments=attachments)


def render_markdown_to_enml(
    markdown: str,
    existing: ExistingResources = None,
    config: Optional[ConversionConfig] = None,
    base_dir: Optional[str] = None,
) -> ConversionResult:
    """Convert Markdown to an ENML body fragment plus referenced attachments.

    ``existing`` lists resources already stored with the note; images that
    point at them (``resource:<hex>`` or identical local bytes) are referenced
    rather than uploaded again.
    """
    return MarkdownRenderer(config).render(markdown, existing, base_dir)
