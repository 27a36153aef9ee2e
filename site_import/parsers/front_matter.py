"""
Front matter extraction and YAML serialization.

A *translator* turns a render source into an ordered mapping of front
matter fields; a *formatter* serializes that mapping.  The
:class:`FrontMatterYAMLExporter` combines both and is what the content
builder calls.  Translators raise
:class:`~site_import.utils.errors.MissingFieldError` for required fields
that are absent, before anything is written.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Generic, Protocol, TypeVar

import yaml

from site_import.models.sources import EpisodeSource, WordPressSource
from site_import.utils.errors import ExtractionError, MissingFieldError

FrontMatter = Dict[str, Any]
FrontMatterFormatter = Callable[[FrontMatter], str]

SourceT = TypeVar("SourceT", contravariant=True)

DATE_FORMAT = "%Y-%m-%d %H:%M"


class FrontMatterTranslator(Protocol[SourceT]):
    def front_matter(self, source: SourceT) -> FrontMatter:
        ...  # pylint: disable=unnecessary-ellipsis


def format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def yaml_formatter(front_matter: FrontMatter) -> str:
    """Serialize ``front_matter`` as block-style YAML, keeping key order."""
    return yaml.safe_dump(
        front_matter,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=1000,
    )


class PostFrontMatterTranslator:
    """Front matter for WordPress posts."""

    def __init__(self, require_featured_image: bool = False) -> None:
        self.require_featured_image = require_featured_image

    def front_matter(self, source: WordPressSource) -> FrontMatter:
        post = source.post
        subject = f"post '{post.slug}'"
        if not post.title:
            raise MissingFieldError("title", subject)
        if not post.slug:
            raise MissingFieldError("slug", subject)
        if self.require_featured_image and not source.featured_image:
            raise MissingFieldError("featuredImage", subject)

        fields: FrontMatter = {
            "title": post.title,
            "date": format_date(post.pub_date),
            "slug": post.slug,
        }
        if post.description:
            fields["description"] = post.description
        fields["tags"] = list(post.tags)
        fields["categories"] = list(post.categories)
        if post.creators:
            fields["authors"] = list(post.creators)
        if source.featured_image:
            fields["featuredImage"] = source.featured_image
        return fields


class EpisodeFrontMatterTranslator:
    """Front matter for podcast episodes."""

    def front_matter(self, source: EpisodeSource) -> FrontMatter:
        episode = source.episode
        return {
            "title": episode.title,
            "date": format_date(episode.date),
            "episode": episode.episode_no,
            "slug": episode.slug,
            "summary": episode.summary,
            "podcastID": episode.podcast_id,
            "audioURL": episode.audio_url,
            "image": episode.image_url,
            "duration": int(round(episode.duration_seconds)),
            "youtubeID": episode.video.id,
        }


class FrontMatterYAMLExporter(Generic[SourceT]):
    """Extracts front matter with a translator and formats it as YAML."""

    def __init__(
        self,
        translator: FrontMatterTranslator[SourceT],
        formatter: FrontMatterFormatter = yaml_formatter,
    ) -> None:
        self.translator = translator
        self.formatter = formatter

    def front_matter_text(self, source: SourceT) -> str:
        fields = self.translator.front_matter(source)
        try:
            return self.formatter(fields)
        except yaml.YAMLError as e:
            raise ExtractionError(f"Could not serialize front matter: {e}") from e


def read_front_matter(text: str) -> FrontMatter:
    """Parse the YAML block at the top of a Markdown document, or ``{}``."""
    if not text.startswith("---"):
        return {}
    parts = text.split("---", 2)
    if len(parts) < 3:
        return {}
    try:
        data = yaml.safe_load(parts[1])
    except yaml.YAMLError:
        return {}
    return data if isinstance(data, dict) else {}
