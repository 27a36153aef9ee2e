from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional

from site_import.models.episode import Episode
from site_import.models.sources import EpisodeSource
from site_import.parsers.front_matter import (
    EpisodeFrontMatterTranslator,
    FrontMatterYAMLExporter,
    read_front_matter,
)
from site_import.parsers.markdown_parser import HTMLToMarkdown
from site_import.utils.errors import report_ok
from site_import.utils.log import log_message
from .content_builder import EpisodeContentURLGenerator, MarkdownContentBuilder


def episode_content_builder() -> MarkdownContentBuilder:
    return MarkdownContentBuilder(FrontMatterYAMLExporter(EpisodeFrontMatterTranslator()))


def latest_written_episode(directory: os.PathLike) -> Optional[int]:
    """Highest ``episode`` number found in the front matter of ``directory``'s files."""
    directory = Path(directory)
    if not directory.is_dir():
        return None
    latest: Optional[int] = None
    for path in directory.glob("*.md"):
        number = read_front_matter(path.read_text(encoding="utf-8")).get("episode")
        if isinstance(number, int) and (latest is None or number > latest):
            latest = number
    return latest


def write_episodes(
    episodes: Iterable[Episode],
    content_dir: os.PathLike,
    html_to_markdown: HTMLToMarkdown,
    *,
    builder: Optional[MarkdownContentBuilder] = None,
    url_generator: Optional[EpisodeContentURLGenerator] = None,
    overwrite_existing: bool = False,
    include_missing_previous: bool = False,
    report_dir: Optional[str] = None,
) -> List[Path]:
    """Write one Markdown file per episode and return the written paths.

    Unless ``include_missing_previous`` is set, episodes numbered below
    the latest episode already present are left alone, so episodes that
    were deleted on purpose are not brought back.
    """
    builder = builder or episode_content_builder()
    url_generator = url_generator or EpisodeContentURLGenerator()
    latest = None
    if not include_missing_previous:
        latest = latest_written_episode(Path(content_dir) / url_generator.section_name)

    written: List[Path] = []
    for episode in episodes:
        if latest is not None and episode.episode_no < latest:
            continue
        path = builder.write(
            EpisodeSource(episode=episode),
            content_dir,
            url_generator,
            html_to_markdown,
            overwrite_existing=overwrite_existing,
        )
        if path is None:
            continue
        written.append(path)
        report_ok("EPISODE_WRITTEN", {"slug": episode.slug, "title": episode.title}, {"path": str(path)}, report_dir=report_dir)

    log_message(f"Wrote {len(written)} episode files", log_dir=report_dir)
    return written
