"""
Writers producing the files of the generated site.

* :mod:`site_import.writers.asset_downloader` – asset files
* :mod:`site_import.writers.content_builder` – Markdown documents
* :mod:`site_import.writers.podcast_writer` – podcast episode documents
"""

from .asset_downloader import AssetDownloader, DownloadSummary
from .content_builder import (
    EpisodeContentURLGenerator,
    MarkdownContentBuilder,
    SectionContentURLGenerator,
)
from .podcast_writer import write_episodes

__all__ = [
    "AssetDownloader",
    "DownloadSummary",
    "EpisodeContentURLGenerator",
    "MarkdownContentBuilder",
    "SectionContentURLGenerator",
    "write_episodes",
]
