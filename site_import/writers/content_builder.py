"""
Markdown file generation.

:class:`MarkdownContentBuilder` renders a source (a WordPress post or a
podcast episode) as YAML front matter followed by its Markdown body and
writes it to the path chosen by a content URL generator.  The whole
document is produced before the file is opened, so an extraction
failure never leaves a partial file behind, and existing files are only
replaced when the caller asks for it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Generic, Optional, Protocol, TypeVar

from site_import.models.sources import EpisodeSource, WordPressSource
from site_import.parsers.front_matter import FrontMatterYAMLExporter
from site_import.parsers.markdown_parser import FilteredHTMLMarkdownExtractor, HTMLToMarkdown
from site_import.utils.errors import WriteError

SourceT = TypeVar("SourceT")

MARKDOWN_EXTENSION = ".md"


class ContentURLGenerator(Protocol):
    def destination_path(self, source: Any, content_dir: os.PathLike) -> Path:
        ...  # pylint: disable=unnecessary-ellipsis


class SectionContentURLGenerator:
    """``<content>/<section>/<slug>.md``"""

    def destination_path(self, source: WordPressSource, content_dir: os.PathLike) -> Path:
        return Path(content_dir) / source.section_name / f"{source.slug}{MARKDOWN_EXTENSION}"


class EpisodeContentURLGenerator:
    """``<content>/<section>/<slug>.md`` with a fixed section for all episodes."""

    def __init__(self, section_name: str = "episodes") -> None:
        self.section_name = section_name

    def destination_path(self, source: EpisodeSource, content_dir: os.PathLike) -> Path:
        return Path(content_dir) / self.section_name / f"{source.slug}{MARKDOWN_EXTENSION}"


def render_document(front_matter_text: str, markdown: str) -> str:
    front = front_matter_text if front_matter_text.endswith("\n") else front_matter_text + "\n"
    return f"---\n{front}---\n\n{markdown.strip()}\n"


class MarkdownContentBuilder(Generic[SourceT]):
    """Builds and writes Markdown documents with YAML front matter."""

    def __init__(
        self,
        front_matter_exporter: FrontMatterYAMLExporter,
        markdown_extractor: Optional[FilteredHTMLMarkdownExtractor] = None,
    ) -> None:
        self.front_matter_exporter = front_matter_exporter
        self.markdown_extractor = markdown_extractor or FilteredHTMLMarkdownExtractor()

    def content(self, source: SourceT, html_to_markdown: HTMLToMarkdown) -> str:
        """Render ``source`` as a complete Markdown document."""
        front_matter_text = self.front_matter_exporter.front_matter_text(source)
        markdown = self.markdown_extractor.markdown(source, html_to_markdown)
        return render_document(front_matter_text, markdown)

    def write(
        self,
        source: SourceT,
        content_dir: os.PathLike,
        url_generator: ContentURLGenerator,
        html_to_markdown: HTMLToMarkdown,
        overwrite_existing: bool = False,
    ) -> Optional[Path]:
        """Write ``source`` below ``content_dir``.

        :return: The written path, or ``None`` when the file already
            existed and ``overwrite_existing`` is false.
        :raises ExtractionError: if the body or front matter cannot be
            extracted (``MissingFieldError`` for absent required fields).
        :raises WriteError: on filesystem failure.
        """
        path = url_generator.destination_path(source, content_dir)
        if path.exists() and not overwrite_existing:
            return None

        document = self.content(source, html_to_markdown)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(document, encoding="utf-8")
        except OSError as e:
            raise WriteError(f"Could not write {path}: {e}") from e
        return path
