from __future__ import annotations

import os
import re
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

import requests

from site_import.models.episode import Video
from site_import.utils.errors import DecodeError
from site_import.writers.asset_downloader import with_retries

_ISO_DURATION = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)


def parse_iso_duration(value: Optional[str]) -> float:
    """Seconds in an ISO-8601 duration such as ``PT1H2M3S``; ``0`` if unparsable."""
    match = _ISO_DURATION.match(value or "")
    if not match:
        return 0.0
    parts = {key: float(val) if val else 0.0 for key, val in match.groupdict().items()}
    return parts["days"] * 86400 + parts["hours"] * 3600 + parts["minutes"] * 60 + parts["seconds"]


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class YouTubeClient:
    """Minimal client for the YouTube Data API v3.

    - Reads the API key from ``YOUTUBE_API_KEY`` by default.
    - Lists the videos of a playlist with their durations, which is
      everything the podcast import needs.

    Example::

        client = YouTubeClient()
        videos = client.playlist_videos("PLmpJxPaZbSnBvpnEdaX78wSM1d9BVvMfI")
    """

    base_url = "https://www.googleapis.com/youtube/v3"
    page_size = 50

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        key = api_key or os.getenv("YOUTUBE_API_KEY")
        if not key:
            raise ValueError("Set YOUTUBE_API_KEY or pass api_key explicitly.")
        self.api_key = key
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------- public API -------------------------
    def playlist_videos(self, playlist_id: str) -> List[Video]:
        """All available videos of ``playlist_id``, in playlist order."""
        entries = list(self._playlist_items(playlist_id))
        details: Dict[str, Dict[str, Any]] = {}
        ids = [entry["contentDetails"]["videoId"] for entry in entries]
        for start in range(0, len(ids), self.page_size):
            batch = ids[start:start + self.page_size]
            data = self._get("videos", {"part": "contentDetails,snippet", "id": ",".join(batch)})
            for item in data.get("items", []):
                details[item["id"]] = item

        videos: List[Video] = []
        for entry in entries:
            video_id = entry["contentDetails"]["videoId"]
            item = details.get(video_id)
            # Private and deleted videos are listed without details
            if item is None:
                continue
            snippet = item.get("snippet") or entry.get("snippet") or {}
            videos.append(
                Video(
                    id=video_id,
                    title=snippet.get("title", ""),
                    description=snippet.get("description", ""),
                    duration_seconds=parse_iso_duration(item.get("contentDetails", {}).get("duration")),
                    published_at=_parse_timestamp(
                        entry.get("contentDetails", {}).get("videoPublishedAt") or snippet.get("publishedAt")
                    ),
                )
            )
        return videos

    # ----------------------- internal helpers ----------------------
    def _playlist_items(self, playlist_id: str) -> Iterator[Dict[str, Any]]:
        page_token: Optional[str] = None
        while True:
            params = {
                "part": "snippet,contentDetails",
                "playlistId": playlist_id,
                "maxResults": self.page_size,
            }
            if page_token:
                params["pageToken"] = page_token
            data = self._get("playlistItems", params)
            yield from data.get("items", [])
            page_token = data.get("nextPageToken")
            if not page_token:
                break

    def _get(self, resource: str, params: Dict[str, Any]) -> Dict[str, Any]:
        def do_request() -> requests.Response:
            return self.session.get(
                f"{self.base_url}/{resource}",
                params={**params, "key": self.api_key},
                timeout=self.timeout,
            )

        try:
            resp = with_retries(do_request)
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            raise DecodeError(f"YouTube API request for {resource} failed: {e}") from e
