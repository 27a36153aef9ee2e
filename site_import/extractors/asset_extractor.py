"""
Discovery of media assets referenced by post bodies.

Post bodies link uploads as ``<site>/wp-content/uploads/<path>``.  Each
match becomes an :class:`~site_import.models.asset_import.AssetImport`
that maps the remote file to a local path under the resource asset
directory and to the root-relative path substituted back into the body.

Matches whose URL is malformed (missing scheme or host, embedded
whitespace as produced by ``srcset`` lists or single-quoted attributes)
are skipped without error.
"""

from __future__ import annotations

import os
import re
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Set, Tuple
from urllib.parse import unquote, urlparse

from site_import.models.asset_import import AssetImport
from site_import.models.post import Post
from site_import.settings import Settings
from site_import.utils.errors import ExtractionError

UPLOADS_PATH = "/wp-content/uploads"

_INVALID_URL_CHARS = re.compile(r"[\s<>'\\]")


def asset_pattern(asset_site_url: str) -> str:
    """Regex matching upload URLs of ``asset_site_url``; group 1 is the upload path."""
    return re.escape(asset_site_url.rstrip("/") + UPLOADS_PATH) + r'([^"]+)'


def asset_root_for(settings: Settings) -> str:
    """Root-relative directory the uploads of ``settings.asset_site_url`` live in.

    For resources in ``Resources`` and assets in ``Resources/media`` of
    ``https://leogdion.name`` this is ``/media/leogdion``.

    When ``resource_asset_dir`` is not inside ``resources_dir`` only its
    last component is used (``/elsewhere/media`` also gives
    ``/media/leogdion``), so the root never climbs out of the site with
    ``..`` segments.
    """
    relative = os.path.relpath(settings.resource_asset_dir, settings.resources_dir)
    if relative.startswith(".."):
        relative = Path(settings.resource_asset_dir).name
    parts = [part for part in PurePosixPath(Path(relative).as_posix()).parts if part != "."]
    host = urlparse(settings.asset_site_url).hostname
    prefix = host.split(".")[0] if host else "default"
    return "/".join(["", *parts, prefix])


def _is_well_formed(url: str) -> bool:
    if _INVALID_URL_CHARS.search(url):
        return False
    try:
        parsed = urlparse(url)
        # Accessing the port validates it
        parsed.port
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def asset_import_for(
    post: Post,
    source_url: str,
    upload_path: str,
    *,
    asset_root: str,
    resources_dir: Path,
    import_dir: Optional[Path] = None,
) -> Optional[AssetImport]:
    """Map one matched URL to an :class:`AssetImport`, or ``None`` if malformed."""
    if not _is_well_formed(source_url):
        return None
    upload = unquote(urlparse(upload_path).path)
    if not upload.strip("/") or ".." in PurePosixPath(upload).parts:
        return None
    upload = "/" + upload.lstrip("/")
    featured_path = asset_root.rstrip("/") + upload
    return AssetImport(
        parent_id=post.id,
        source_url=source_url,
        destination_path=Path(resources_dir) / featured_path.lstrip("/"),
        featured_path=featured_path,
        import_path=Path(import_dir) / upload.lstrip("/") if import_dir else None,
    )


def extract_asset_imports(
    posts: Iterable[Post],
    pattern: str,
    asset_root: str,
    settings: Settings,
) -> List[AssetImport]:
    """Find every asset referenced by ``posts``.

    :param posts: Posts to scan, usually only those of type ``post``.
    :param pattern: Regex whose whole match is the source URL and whose
        first group is the path below the uploads directory.
    :param asset_root: Result of :func:`asset_root_for`.
    :param settings: Run settings providing the resource and import directories.
    :return: One import per distinct (post, URL) pair, in document order.
    :raises ExtractionError: if ``pattern`` is not a valid regex.
    """
    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise ExtractionError(f"Invalid asset pattern {pattern!r}: {e}") from e

    seen: Set[Tuple[int, str]] = set()
    imports: List[AssetImport] = []
    for post in posts:
        for match in regex.finditer(post.body or ""):
            source_url = match.group(0)
            key = (post.id, source_url)
            if key in seen:
                continue
            seen.add(key)
            asset = asset_import_for(
                post,
                source_url,
                match.group(1) if regex.groups else "",
                asset_root=asset_root,
                resources_dir=settings.resources_dir,
                import_dir=settings.import_asset_dir,
            )
            if asset is not None:
                imports.append(asset)
    return imports
