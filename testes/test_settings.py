import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from site_import.settings import DEFAULT_RSS_URL, Settings, load_config


def test_defaults_are_filled(monkeypatch):
    monkeypatch.setenv("WORDPRESS_SITE_URL", "https://leogdion.name/")
    monkeypatch.delenv("YOUTUBE_API_KEY", raising=False)

    config = load_config(config={})

    assert config["wordpress"]["resource_asset_dir"] == str(Path("Resources") / "media")
    assert config["podcast"]["rss_url"] == DEFAULT_RSS_URL
    assert config["podcast"]["content_dir"] == "Content"
    settings = Settings.from_config(config)
    assert settings.asset_site_url == "https://leogdion.name"
    assert settings.download_workers == 4


def test_config_file_and_overrides(tmp_path):
    path = tmp_path / "import_config.json"
    path.write_text(
        json.dumps({"wordpress": {"content_dir": "site/content", "download_workers": 2}, "reports_dir": "out"}),
        encoding="utf-8",
    )

    settings = Settings.from_config(load_config(str(path)), content_dir="other", skip_download=None)

    assert settings.content_dir == Path("other")
    assert settings.download_workers == 2
    assert settings.reports_dir == Path("out")
    assert settings.skip_download is False


def test_settings_are_immutable(settings):
    with pytest.raises(ValidationError):
        settings.content_dir = Path("elsewhere")


def test_invalid_worker_count():
    with pytest.raises(ValidationError):
        Settings.from_config(load_config(config={}), download_workers=0)


def test_include_missing_previous_lives_in_podcast_section():
    config = load_config(config={"podcast": {"include_missing_previous": True}})

    assert "include_missing_previous" not in config["wordpress"]
    assert config["podcast"]["include_missing_previous"] is True
    assert Settings.from_config(config).include_missing_previous is True
    assert load_config(config={})["podcast"]["include_missing_previous"] is False
