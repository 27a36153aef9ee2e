from __future__ import annotations

import re
from typing import Callable, Optional, Protocol, Sequence

from bs4 import BeautifulSoup
from markdownify import markdownify

from site_import.utils.errors import ExtractionError, SiteImportError

HTMLToMarkdown = Callable[[str], str]
HTMLFilter = Callable[[str], str]

_BLOCK_TAG = re.compile(r"<(p|div|h[1-6]|ul|ol|blockquote|pre|table|figure)[\s>]", re.IGNORECASE)


class HTMLSource(Protocol):
    @property
    def body_html(self) -> str:
        ...  # pylint: disable=unnecessary-ellipsis


def strip_shortcodes(html: str) -> str:
    """Remove WordPress ``[caption]``-style shortcodes, keeping their content."""
    return re.sub(r"\[/?(caption|gallery|embed)[^\]]*\]", "", html or "", flags=re.IGNORECASE)


def autop(html: str) -> str:
    """Wrap blank-line separated text in ``<p>`` like WordPress does on render.

    Exports store post bodies without paragraph tags; bodies that already
    contain block elements are returned unchanged.
    """
    if not html or _BLOCK_TAG.search(html):
        return html or ""
    blocks = [block.strip() for block in re.split(r"\n\s*\n", html) if block.strip()]
    return "".join(f"<p>{block.replace(chr(10), '<br />')}</p>" for block in blocks)


def markdown_from_html(html: str) -> str:
    """Convert a WordPress post body to Markdown."""
    cleaned = autop(strip_shortcodes(html))
    soup = BeautifulSoup(cleaned, "html.parser")

    # Remove scripts/styles
    for bad in soup.find_all(["script", "style"]):
        bad.decompose()

    text = markdownify(str(soup), heading_style="ATX", bullets="-", strip=["span"])
    text = text.replace("\xa0", " ")
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


class FilteredHTMLMarkdownExtractor:
    """Runs a source's HTML through ``filters`` and then a Markdown converter."""

    def __init__(self, filters: Optional[Sequence[HTMLFilter]] = None) -> None:
        self.filters = list(filters or [])

    def markdown(self, source: HTMLSource, html_to_markdown: HTMLToMarkdown) -> str:
        html = source.body_html
        for html_filter in self.filters:
            html = html_filter(html)
        try:
            return html_to_markdown(html)
        except SiteImportError:
            raise
        except Exception as e:  # converters are third-party code
            raise ExtractionError(f"Could not convert HTML to Markdown: {e}") from e
