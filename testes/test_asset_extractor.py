from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import PRODUCTIVITY_BODY, PRODUCTIVITY_IMAGE, PRODUCTIVITY_SLUG, PRODUCTIVITY_TITLE, SITE_URL
from site_import.extractors.asset_extractor import asset_pattern, asset_root_for, extract_asset_imports
from site_import.models.post import Post
from site_import.utils.errors import ExtractionError


def make_post(body, post_id=42, slug=PRODUCTIVITY_SLUG, title=PRODUCTIVITY_TITLE):
    return Post(
        id=post_id,
        title=title,
        slug=slug,
        link=f"{SITE_URL}/2019/08/01/{slug}/",
        body=body,
        pub_date=datetime(2019, 8, 1, tzinfo=timezone.utc),
    )


def extract(posts, settings):
    return extract_asset_imports(posts, asset_pattern(settings.asset_site_url), asset_root_for(settings), settings)


def test_asset_root_uses_relative_asset_dir_and_host_prefix(settings):
    assert asset_root_for(settings) == "/media/leogdion"


def test_asset_root_without_host_uses_default(settings):
    other = settings.model_copy(update={"asset_site_url": ""})
    assert asset_root_for(other) == "/media/default"


def test_asset_root_outside_resources_uses_directory_name(settings, tmp_path):
    outside = settings.model_copy(update={"resource_asset_dir": tmp_path / "elsewhere" / "media"})
    assert asset_root_for(outside) == "/media/leogdion"


def test_productivity_post_yields_one_asset_import(settings):
    [asset] = extract([make_post(PRODUCTIVITY_BODY)], settings)

    assert asset.parent_id == 42
    assert asset.source_url == PRODUCTIVITY_IMAGE
    assert asset.featured_path == "/media/leogdion/2019/08/productivity-apps.png"
    assert asset.destination_path == Path(settings.resources_dir) / "media/leogdion/2019/08/productivity-apps.png"
    assert asset.import_path is None


def test_same_url_twice_in_a_post_is_imported_once(settings):
    body = PRODUCTIVITY_BODY + f'<a href="{PRODUCTIVITY_IMAGE}">full size</a>'

    assets = extract([make_post(body)], settings)

    assert [a.source_url for a in assets] == [PRODUCTIVITY_IMAGE]


def test_same_url_in_two_posts_maps_to_the_same_destination(settings):
    first = make_post(PRODUCTIVITY_BODY)
    second = make_post(PRODUCTIVITY_BODY, post_id=43, slug="other")

    assets = extract([first, second], settings)

    assert [a.parent_id for a in assets] == [42, 43]
    assert assets[0].destination_path == assets[1].destination_path


def test_extraction_is_idempotent(settings):
    posts = [make_post(PRODUCTIVITY_BODY)]
    assert extract(posts, settings) == extract(posts, settings)


def test_malformed_matches_are_skipped(settings):
    body = (
        f"<img src='{SITE_URL}/wp-content/uploads/2019/08/single-quoted.png' alt=\"x\" />"
        + PRODUCTIVITY_BODY
    )

    assets = extract([make_post(body)], settings)

    assert [a.source_url for a in assets] == [PRODUCTIVITY_IMAGE]


def test_other_hosts_are_ignored(settings):
    body = '<img src="https://example.com/wp-content/uploads/2019/08/x.png" />'
    assert extract([make_post(body)], settings) == []


def test_import_dir_maps_to_local_mirror(settings, tmp_path):
    mirrored = settings.model_copy(update={"import_asset_dir": tmp_path / "uploads"})

    [asset] = extract([make_post(PRODUCTIVITY_BODY)], mirrored)

    assert asset.import_path == tmp_path / "uploads" / "2019/08/productivity-apps.png"


def test_invalid_pattern_raises(settings):
    with pytest.raises(ExtractionError):
        extract_asset_imports([make_post(PRODUCTIVITY_BODY)], "([", "/media/leogdion", settings)
