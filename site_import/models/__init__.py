"""
Data models shared by the extractors, parsers and writers.

All records are immutable pydantic models.
"""

from .asset_import import AssetImport
from .episode import Episode, Video
from .post import Post, SectionedPosts
from .sources import EpisodeSource, WordPressSource

__all__ = [
    "AssetImport",
    "Episode",
    "EpisodeSource",
    "Post",
    "SectionedPosts",
    "Video",
    "WordPressSource",
]
