"""
Run configuration.

Configuration is read from a JSON file (``config/import_config.json`` by
default) or supplied directly as a dictionary.  Missing keys are filled
with defaults, some of which come from environment variables, so that
the rest of the pipeline never has to guard against ``KeyError``.  The
``wordpress`` section is then frozen into a :class:`Settings` bundle
that is passed by reference to every component of a run; nothing
mutates it afterwards.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CONFIG_FILE = os.path.join("config", "import_config.json")
DEFAULT_PLAYLIST_ID = "PLmpJxPaZbSnBvpnEdaX78wSM1d9BVvMfI"
DEFAULT_RSS_URL = "https://feeds.transistor.fm/empowerapps-show"


def load_config(config_file: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Load ``config_file`` (if it exists) and fill in every default."""
    if config_file and os.path.exists(config_file):
        with open(config_file, "r", encoding="utf-8") as f:
            config = json.load(f)
    elif config is None:
        config = {}

    config.setdefault("wordpress", {})
    wp = config["wordpress"]
    wp.setdefault("exports_dir", os.path.join("WordPress", "exports"))
    wp.setdefault("resources_dir", "Resources")
    wp.setdefault("resource_asset_dir", os.path.join(wp["resources_dir"], "media"))
    wp.setdefault("import_asset_dir", None)
    wp.setdefault("content_dir", "Content")
    wp.setdefault("asset_site_url", os.getenv("WORDPRESS_SITE_URL", ""))
    wp.setdefault("skip_download", False)
    wp.setdefault("overwrite_assets", False)
    wp.setdefault("overwrite_existing", False)
    wp.setdefault("download_workers", 4)
    wp.setdefault("download_timeout", 30.0)
    wp.setdefault("download_retries", 3)
    wp.setdefault("run_deadline", None)
    wp.setdefault("redirect_format", "netlify")

    config.setdefault("podcast", {})
    podcast = config["podcast"]
    podcast.setdefault("rss_url", DEFAULT_RSS_URL)
    podcast.setdefault("playlist_id", DEFAULT_PLAYLIST_ID)
    podcast.setdefault("youtube_api_key", os.getenv("YOUTUBE_API_KEY", ""))
    podcast.setdefault("content_dir", wp["content_dir"])
    podcast.setdefault("include_missing_previous", False)

    config.setdefault("reports_dir", os.path.join("reports", "import"))
    return config


class Settings(BaseModel):
    """Immutable settings bundle for a WordPress import run."""

    model_config = ConfigDict(frozen=True)

    exports_dir: Path
    resources_dir: Path
    resource_asset_dir: Path
    import_asset_dir: Optional[Path] = None
    content_dir: Path
    asset_site_url: str
    skip_download: bool = False
    overwrite_assets: bool = False
    overwrite_existing: bool = False
    include_missing_previous: bool = False
    download_workers: int = Field(4, ge=1)
    download_timeout: float = Field(30.0, gt=0)
    download_retries: int = Field(3, ge=1)
    run_deadline: Optional[float] = Field(None, gt=0)
    reports_dir: Path = Path("reports") / "import"

    @field_validator("asset_site_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return (v or "").strip().rstrip("/")

    @classmethod
    def from_config(cls, config: Dict[str, Any], **overrides: Any) -> "Settings":
        """Build settings from a loaded config; ``overrides`` win when not ``None``."""
        values = {key: value for key, value in config["wordpress"].items() if key in cls.model_fields}
        values.setdefault(
            "include_missing_previous", config.get("podcast", {}).get("include_missing_previous", False)
        )
        if config.get("reports_dir"):
            values["reports_dir"] = config["reports_dir"]
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
