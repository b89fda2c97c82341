"""Markdown ⇄ ENML conversion, transport-agnostic.

Contains:
- renderer_iface: the known-resource datasource Protocol and ``resource:`` URLs
- attachments: content-addressed registry and image target resolution
- renderer: Markdown → ENML body (markdown-it-py)
- sanitizer: ENML allow-list enforcement (BeautifulSoup)
- exporter: ENML → Markdown (markdownify)
- preview: plain-text search previews
"""

from .exporter import enml_to_markdown
from .options import ConversionConfig
from .renderer import render_markdown_to_enml

__all__ = ["ConversionConfig", "enml_to_markdown", "render_markdown_to_enml"]
