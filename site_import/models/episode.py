from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Video(BaseModel):
    """A video from the show's YouTube playlist."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    duration_seconds: float = 0
    published_at: Optional[datetime] = None


class Episode(BaseModel):
    """A podcast episode joined with its matching video."""

    model_config = ConfigDict(frozen=True)

    podcast_id: str
    episode_no: int = Field(..., ge=0)
    slug: str = Field(..., min_length=1)
    title: str
    date: datetime
    summary: str
    content: str
    audio_url: str
    image_url: str
    duration_seconds: float
    video: Video
