"""Render contexts handed to the content builder."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from .episode import Episode
from .post import Post


class WordPressSource(BaseModel):
    """A post together with the section it is written to.

    ``html`` is the body after asset URLs were rewritten; it defaults to
    the untouched post body.
    """

    model_config = ConfigDict(frozen=True)

    section_name: str
    post: Post
    featured_image: Optional[str] = None
    html: Optional[str] = None

    @property
    def slug(self) -> str:
        return self.post.slug

    @property
    def body_html(self) -> str:
        return self.post.body if self.html is None else self.html


class EpisodeSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    episode: Episode

    @property
    def slug(self) -> str:
        return self.episode.slug

    @property
    def body_html(self) -> str:
        return self.episode.content
