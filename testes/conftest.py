import os
import sys
from xml.sax.saxutils import escape

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from site_import.settings import Settings

SITE_URL = "https://leogdion.name"

PRODUCTIVITY_TITLE = "Productivity Apps for Developers (and Everyone Else)"
PRODUCTIVITY_SLUG = "productivity-apps-for-developers-and-everyone"
PRODUCTIVITY_LINK = f"{SITE_URL}/2019/08/01/{PRODUCTIVITY_SLUG}/"
PRODUCTIVITY_IMAGE = f"{SITE_URL}/wp-content/uploads/2019/08/productivity-apps.png"
PRODUCTIVITY_BODY = (
    "<p>It's important to keep a set of great productivity apps.</p>"
    f'<p><img src="{PRODUCTIVITY_IMAGE}" alt="Apps" /></p>'
)


def wxr_item(
    post_id=1,
    title="Post",
    slug="post-name",
    link=None,
    body="",
    post_type="post",
    status="publish",
    pub_date="Thu, 01 Aug 2019 12:00:00 +0000",
    post_date="2019-08-01 08:00:00",
    parent=0,
    categories=("Productivity",),
    tags=("Apps",),
    creator="leogdion",
    excerpt="",
):
    link = link if link is not None else f"{SITE_URL}/2019/08/01/{slug}/"
    parts = ["<item>"]
    if title is not None:
        parts.append(f"<title>{escape(title)}</title>")
    if link:
        parts.append(f"<link>{escape(link)}</link>")
    if pub_date is not None:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    parts.append(f"<dc:creator><![CDATA[{creator}]]></dc:creator>")
    parts.append(f'<guid isPermaLink="false">{escape(link or "")}</guid>')
    parts.append("<description></description>")
    parts.append(f"<content:encoded><![CDATA[{body}]]></content:encoded>")
    parts.append(f"<excerpt:encoded><![CDATA[{excerpt}]]></excerpt:encoded>")
    if post_id is not None:
        parts.append(f"<wp:post_id>{post_id}</wp:post_id>")
    if post_date is not None:
        parts.append(f"<wp:post_date><![CDATA[{post_date}]]></wp:post_date>")
    parts.append(f"<wp:post_name><![CDATA[{slug}]]></wp:post_name>")
    parts.append(f"<wp:status><![CDATA[{status}]]></wp:status>")
    parts.append(f"<wp:post_parent>{parent}</wp:post_parent>")
    parts.append(f"<wp:post_type><![CDATA[{post_type}]]></wp:post_type>")
    for category in categories:
        parts.append(f'<category domain="category" nicename="{category.lower()}"><![CDATA[{category}]]></category>')
    for tag in tags:
        parts.append(f'<category domain="post_tag" nicename="{tag.lower()}"><![CDATA[{tag}]]></category>')
    parts.append("</item>")
    return "\n".join(parts)


def wxr_document(items, version="1.2"):
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
    xmlns:excerpt="http://wordpress.org/export/{version}/excerpt/"
    xmlns:content="http://purl.org/rss/1.0/modules/content/"
    xmlns:dc="http://purl.org/dc/elements/1.1/"
    xmlns:wp="http://wordpress.org/export/{version}/">
<channel>
<title>Leo Dion</title>
<link>{SITE_URL}</link>
<wp:wxr_version>{version}</wp:wxr_version>
{"".join(items)}
</channel>
</rss>
"""


def productivity_item(**overrides):
    values = dict(
        post_id=42,
        title=PRODUCTIVITY_TITLE,
        slug=PRODUCTIVITY_SLUG,
        link=PRODUCTIVITY_LINK,
        body=PRODUCTIVITY_BODY,
    )
    values.update(overrides)
    return wxr_item(**values)


@pytest.fixture
def exports_dir(tmp_path):
    path = tmp_path / "WordPress" / "exports"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def settings(tmp_path, exports_dir):
    return Settings(
        exports_dir=exports_dir,
        resources_dir=tmp_path / "Resources",
        resource_asset_dir=tmp_path / "Resources" / "media",
        content_dir=tmp_path / "Content",
        asset_site_url=SITE_URL,
        download_workers=1,
        reports_dir=tmp_path / "reports",
    )


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    # Run reports default to a path relative to the working directory
    monkeypatch.chdir(tmp_path)
