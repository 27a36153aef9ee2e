"""
Parsers and converters used by the content builder.

Exposes the HTML → Markdown converter from
:mod:`site_import.parsers.markdown_parser` and the front matter
translators and YAML exporter from :mod:`site_import.parsers.front_matter`.
"""

from .front_matter import (
    EpisodeFrontMatterTranslator,
    FrontMatterYAMLExporter,
    PostFrontMatterTranslator,
    yaml_formatter,
)
from .markdown_parser import FilteredHTMLMarkdownExtractor, markdown_from_html

__all__ = [
    "EpisodeFrontMatterTranslator",
    "FilteredHTMLMarkdownExtractor",
    "FrontMatterYAMLExporter",
    "PostFrontMatterTranslator",
    "markdown_from_html",
    "yaml_formatter",
]
