from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AssetImport(BaseModel):
    """A media file referenced by a post that must be copied into the site.

    ``source_url`` is the exact substring matched in the post body,
    ``destination_path`` the local file to create and ``featured_path``
    the root-relative path that replaces the URL in rewritten bodies.
    ``import_path`` optionally points at a local mirror of the uploads
    directory that is copied instead of fetching ``source_url``.
    """

    model_config = ConfigDict(frozen=True)

    parent_id: int
    source_url: str
    destination_path: Path
    featured_path: str
    import_path: Optional[Path] = None
