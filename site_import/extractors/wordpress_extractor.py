"""
Decoding of WordPress WXR export files.

Every ``*.xml`` file in the exports directory is one export and its file
name (without extension) is the section the posts are written to, e.g.
``exports/articles.xml`` fills the ``articles`` section.
"""

from __future__ import annotations

import html
import os
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, List, Optional, Protocol

from pydantic import ValidationError

from site_import.models.post import Post, SectionedPosts
from site_import.utils.errors import DecodeError
from site_import.utils.slugs import slug_from_link

CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
DC_NS = "http://purl.org/dc/elements/1.1/"
WP_NS_PREFIX = "http://wordpress.org/export/"

_WP_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Item types that are written as documents and so need a title
TITLED_TYPES = ("post", "page")


class PostsExportDecoder(Protocol):
    def posts(self, exports_dir: str) -> SectionedPosts:
        ...  # pylint: disable=unnecessary-ellipsis


def _parse_taxonomy_field(field_value: Optional[str]) -> List[str]:
    """Split a comma or pipe separated taxonomy value and decode HTML entities."""
    if not field_value:
        return []
    return [html.unescape(item.strip()) for item in re.split(r"[,|]", field_value) if item.strip()]


def _wp_namespace(root: ET.Element) -> str:
    """Return the WordPress export namespace used by ``root`` (1.0, 1.1 or 1.2)."""
    for element in root.iter():
        tag = element.tag
        if tag.startswith("{" + WP_NS_PREFIX):
            namespace = tag[1:].split("}", 1)[0]
            # Skip the excerpt sub-namespace (".../1.2/excerpt/")
            if not namespace.rstrip("/").endswith("excerpt"):
                return namespace
    return WP_NS_PREFIX + "1.2/"


def _text(item: ET.Element, tag: str) -> Optional[str]:
    element = item.find(tag)
    if element is None or element.text is None:
        return None
    text = element.text.strip()
    return text or None


def _parse_rss_date(value: Optional[str]) -> Optional[datetime]:
    # Drafts are exported with "Mon, 30 Nov -0001 00:00:00 +0000", which
    # the email parser would read as a two-digit year
    if not value or " -0001 " in value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def _parse_wp_date(value: Optional[str], *, utc: bool = False) -> Optional[datetime]:
    if not value or value.startswith("0000-00-00"):
        return None
    try:
        parsed = datetime.strptime(value, _WP_DATE_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc) if utc else parsed


def decode_item(item: ET.Element, wp_ns: str, *, source: str = "") -> Post:
    """Build a :class:`Post` from one ``<item>`` element.

    :param item: The ``<item>`` element of the export channel.
    :param wp_ns: The WordPress namespace URI detected for the document.
    :param source: File name used in error messages.
    :raises DecodeError: when the title, link, publish date or post id is
        missing or malformed.
    """
    wp = "{" + wp_ns + "}"
    post_id = _text(item, wp + "post_id")
    post_type = _text(item, wp + "post_type") or "post"
    title = _text(item, "title")
    link = _text(item, "link")
    context = f"item {post_id or title or '?'} in {source or 'export'}"

    for name, value in (("post_id", post_id), ("link", link)):
        if not value:
            raise DecodeError(f"Missing required field '{name}' for {context}")
    # Menu items and some attachments are exported with an empty title
    if item.find("title") is None or (not title and post_type in TITLED_TYPES):
        raise DecodeError(f"Missing required field 'title' for {context}")

    pub_date = (
        _parse_rss_date(_text(item, "pubDate"))
        or _parse_wp_date(_text(item, wp + "post_date_gmt"), utc=True)
        or _parse_wp_date(_text(item, wp + "post_date"), utc=True)
    )
    if pub_date is None:
        raise DecodeError(f"Missing or invalid publish date for {context}")

    categories: List[str] = []
    for cat_element in item.findall('category[@domain="category"]'):
        categories.extend(_parse_taxonomy_field(cat_element.text))
    tags = [
        html.unescape(tag.text.strip())
        for tag in item.findall('category[@domain="post_tag"]')
        if tag.text and tag.text.strip()
    ]
    creators = [c.text.strip() for c in item.findall("{%s}creator" % DC_NS) if c.text and c.text.strip()]

    slug = _text(item, wp + "post_name") or slug_from_link(link)
    excerpt = _text(item, "{%sexcerpt/}encoded" % wp_ns) or _text(item, "description")

    try:
        return Post(
            id=int(post_id),
            type=post_type,
            title=html.unescape(title or ""),
            slug=slug,
            link=link,
            body=(item.findtext("{%s}encoded" % CONTENT_NS) or ""),
            description=excerpt,
            pub_date=pub_date,
            post_date=_parse_wp_date(_text(item, wp + "post_date")),
            parent_id=_text(item, wp + "post_parent"),
            categories=categories,
            tags=tags,
            creators=creators,
            status=_text(item, wp + "status") or "publish",
            attachment_url=_text(item, wp + "attachment_url"),
        )
    except (ValueError, ValidationError) as e:
        raise DecodeError(f"Invalid data for {context}: {e}") from e


def decode_export(file_path: str) -> List[Post]:
    """Decode every ``<item>`` of one WordPress export file, in document order."""
    try:
        tree = ET.parse(file_path)
    except (ET.ParseError, OSError) as e:
        raise DecodeError(f"Could not parse export {file_path}: {e}") from e
    root = tree.getroot()
    wp_ns = _wp_namespace(root)
    source = os.path.basename(file_path)
    return [decode_item(item, wp_ns, source=source) for item in root.findall(".//item")]


class WordPressExportDecoder:
    """Decodes a directory of WordPress exports into posts grouped by section."""

    def __init__(self, extension: str = ".xml") -> None:
        self.extension = extension

    def export_files(self, exports_dir: str) -> Dict[str, str]:
        """Map section names to export file paths, sorted by file name."""
        if not os.path.isdir(exports_dir):
            raise DecodeError(f"Exports directory not found: {exports_dir}")
        files: Dict[str, str] = {}
        for name in sorted(os.listdir(exports_dir)):
            stem, ext = os.path.splitext(name)
            if ext.lower() != self.extension:
                continue
            files[stem] = os.path.join(exports_dir, name)
        return files

    def posts(self, exports_dir: str) -> SectionedPosts:
        """Decode every export; a post id may appear in one export only.

        :raises DecodeError: when a post id is found in two exports.
        """
        sections: SectionedPosts = {}
        seen: Dict[int, str] = {}
        for section, path in self.export_files(str(exports_dir)).items():
            posts = decode_export(path)
            source = os.path.basename(path)
            for post in posts:
                if post.id in seen:
                    raise DecodeError(f"Post {post.id} appears in both {seen[post.id]} and {source}")
                seen[post.id] = source
            sections[section] = posts
        return sections
