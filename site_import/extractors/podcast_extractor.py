"""
Podcast RSS extraction and the episode/video join.

Feed entries are parsed with :mod:`feedparser` and paired with the
videos of the show's YouTube playlist by title (trimmed of surrounding
whitespace).  Every entry must have exactly one video; a missing video
aborts the import before anything is written.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
from urllib.parse import urlparse

import feedparser
import requests
from bs4 import BeautifulSoup

from site_import.models.episode import Episode, Video
from site_import.utils.errors import DecodeError, MissingFieldError, NoMatchError
from site_import.utils.slugs import slugify

FeedItem = Dict[str, Any]
PodcastIDFunction = Callable[[FeedItem, Video], Optional[str]]

TRANSISTOR_SHARE_HOST = "share.transistor.fm"


def download_rss(rss_url: str, *, timeout: float = 30) -> bytes:
    """Fetch the raw feed at ``rss_url``."""
    try:
        response = requests.get(rss_url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise DecodeError(f"Could not download RSS feed {rss_url}: {e}") from e
    if not response.content:
        raise DecodeError(f"RSS feed {rss_url} is empty")
    return response.content


def parse_feed(content: Union[bytes, str]) -> List[FeedItem]:
    """Parse RSS ``content`` and return its entries in feed order."""
    feed = feedparser.parse(content)
    if feed.get("bozo") and not feed.get("entries"):
        raise DecodeError(f"Could not parse RSS feed: {feed.get('bozo_exception')}")
    return list(feed.get("entries", []))


def parse_duration(value: Optional[str]) -> Optional[float]:
    """Parse ``HH:MM:SS``, ``MM:SS`` or plain seconds into seconds."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        parts = [float(p) for p in text.split(":")]
    except ValueError:
        return None
    if len(parts) > 3:
        return None
    seconds = 0.0
    for part in parts:
        seconds = seconds * 60 + part
    return seconds


def first_paragraph(text: Optional[str]) -> Optional[str]:
    """Plain text of the first paragraph of ``text`` (HTML or plain)."""
    if not text or not text.strip():
        return None
    soup = BeautifulSoup(text, "html.parser")
    paragraph = soup.find("p")
    if paragraph is not None:
        candidate = paragraph.get_text(" ", strip=True)
    else:
        plain = soup.get_text("\n")
        candidate = re.split(r"\n\s*\n", plain.strip(), maxsplit=1)[0]
    candidate = re.sub(r"\s+", " ", candidate).strip()
    return candidate or None


def _published(item: FeedItem) -> Optional[datetime]:
    parsed = item.get("published_parsed") or item.get("updated_parsed")
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=timezone.utc)


def _content_html(item: FeedItem) -> Optional[str]:
    for content in item.get("content") or []:
        value = content.get("value")
        if value:
            return value
    return item.get("description") or item.get("summary") or None


def _audio_url(item: FeedItem) -> Optional[str]:
    for enclosure in item.get("enclosures") or []:
        href = enclosure.get("href")
        if href and (enclosure.get("type") or "audio/").startswith("audio/"):
            return href
    return None


def _image_url(item: FeedItem) -> Optional[str]:
    image = item.get("image")
    if isinstance(image, dict) and image.get("href"):
        return image["href"]
    return None


def episode_from_item(podcast_id: str, item: FeedItem, video: Video) -> Episode:
    """Build an :class:`Episode` from a feed entry and its video.

    :raises DecodeError: when the content, publish date or audio
        enclosure is missing.
    :raises MissingFieldError: when an iTunes field needed for the front
        matter is missing.
    """
    raw_title = (item.get("title") or "").strip()
    subject = f"episode '{raw_title}'"

    content = _content_html(item)
    if not content:
        raise DecodeError(f"Invalid podcast episode: {subject} has no content")
    date = _published(item)
    if date is None:
        raise DecodeError(f"Invalid podcast episode: {subject} has no publish date")
    audio_url = _audio_url(item)
    if not audio_url:
        raise DecodeError(f"Invalid podcast episode: {subject} has no audio enclosure")

    duration = parse_duration(item.get("itunes_duration"))
    if duration is None:
        duration = video.duration_seconds or None
    if duration is None:
        raise MissingFieldError("duration", subject)

    title = (item.get("itunes_title") or raw_title).strip()
    if not title:
        raise MissingFieldError("title", subject)

    try:
        episode_no = int(str(item.get("itunes_episode", "")).strip())
    except ValueError:
        raise MissingFieldError("episode", subject) from None

    summary = (
        first_paragraph(item.get("summary"))
        or (item.get("subtitle") or "").strip()
        or first_paragraph(video.description)
    )
    if not summary:
        raise MissingFieldError("summary", subject)

    image_url = _image_url(item)
    if not image_url:
        raise MissingFieldError("image", subject)

    return Episode(
        podcast_id=podcast_id,
        episode_no=episode_no,
        slug=slugify(title),
        title=title,
        date=date,
        summary=summary,
        content=content,
        audio_url=audio_url,
        image_url=image_url,
        duration_seconds=duration,
        video=video,
    )


def videos_by_title(videos: Iterable[Video]) -> Dict[str, Video]:
    """Key ``videos`` by trimmed title; duplicate titles make the join ambiguous."""
    result: Dict[str, Video] = {}
    for video in videos:
        key = video.title.strip()
        if key in result:
            raise NoMatchError(f"More than one video is titled '{key}'")
        result[key] = video
    return result


def episodes_based_on(
    items: Iterable[FeedItem],
    videos: Dict[str, Video],
    podcast_id: PodcastIDFunction,
    *,
    allow_unmatched_videos: bool = False,
) -> List[Episode]:
    """Join feed ``items`` with ``videos`` (keyed by trimmed title).

    :raises NoMatchError: if an item has no video, or a video has no
        item and ``allow_unmatched_videos`` is false.
    :raises DecodeError: if ``podcast_id`` cannot identify an item.
    """
    episodes: List[Episode] = []
    matched = set()
    for item in items:
        title = (item.get("title") or "").strip()
        video = videos.get(title)
        if video is None:
            raise NoMatchError(f"Missing video for episode '{title}'")
        matched.add(title)
        identifier = podcast_id(item, video)
        if not identifier:
            raise DecodeError(f"Invalid podcast episode: no podcast id for '{title}'")
        episodes.append(episode_from_item(identifier, item, video))

    if not allow_unmatched_videos:
        unmatched = [title for title in videos if title not in matched]
        if unmatched:
            raise NoMatchError(f"Missing episode for videos: {', '.join(unmatched)}")
    return episodes


def transistor_podcast_id(item: FeedItem, video: Video) -> Optional[str]:  # pylint: disable=unused-argument
    """Episode id from a Transistor share link (``share.transistor.fm/s/<id>``)."""
    link = item.get("link") or ""
    parsed = urlparse(link)
    if parsed.hostname != TRANSISTOR_SHARE_HOST:
        return None
    segments = [segment for segment in parsed.path.split("/") if segment]
    return segments[-1] if segments else None
