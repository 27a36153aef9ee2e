from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Post(BaseModel):
    """A single item decoded from a WordPress export.

    Posts are immutable once decoded.  ``body`` holds the raw HTML from
    ``content:encoded``; attachments carry their file in
    ``attachment_url`` and point at their post through ``parent_id``.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: int
    type: str = "post"
    title: str = ""
    slug: str
    link: str = Field(..., min_length=1)
    body: str = ""
    description: Optional[str] = None
    pub_date: datetime
    post_date: Optional[datetime] = None
    parent_id: Optional[int] = None
    categories: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    creators: Tuple[str, ...] = ()
    status: str = "publish"
    attachment_url: Optional[str] = None

    @field_validator("parent_id", mode="before")
    @classmethod
    def _zero_means_no_parent(cls, v):
        if v in (None, "", 0, "0"):
            return None
        return v

    @field_validator("categories", "tags", "creators", mode="before")
    @classmethod
    def _dedup_labels(cls, v):
        if not v:
            return ()
        seen = set()
        deduped = []
        for item in v:
            if item and item not in seen:
                seen.add(item)
                deduped.append(item)
        return tuple(deduped)


# Posts grouped by destination section, in export order.
SectionedPosts = Dict[str, List[Post]]
