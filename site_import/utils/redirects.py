"""
Generation of redirect mapping files.

Every imported post moves from its WordPress permalink (for example
``/2019/08/01/productivity-apps/``) to ``/<section>/<slug>`` on the new
site.  :class:`RedirectFileWriter` computes those pairs and writes them
with a pluggable formatter so that existing links keep working after
the migration: a CSV for review, or a Netlify ``_redirects`` file for
deployment.
"""

from __future__ import annotations

import csv
import io
import os
from pathlib import Path
from typing import List, NamedTuple, Protocol, Sequence
from urllib.parse import urlparse

from site_import.models.post import SectionedPosts
from .errors import WriteError


class Redirect(NamedTuple):
    old_path: str
    new_path: str


class RedirectFormatter(Protocol):
    file_name: str

    def format(self, redirects: Sequence[Redirect]) -> str:
        ...  # pylint: disable=unnecessary-ellipsis


class CSVRedirectFormatter:
    """``OldURL,NewURL`` rows, one per redirect."""

    file_name = "redirects.csv"

    def format(self, redirects: Sequence[Redirect]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["OldURL", "NewURL"])
        for redirect in redirects:
            writer.writerow([redirect.old_path, redirect.new_path])
        return buffer.getvalue()


class NetlifyRedirectFormatter:
    """Netlify ``_redirects`` lines with a permanent status."""

    file_name = "_redirects"

    def __init__(self, status: int = 301) -> None:
        self.status = status

    def format(self, redirects: Sequence[Redirect]) -> str:
        return "".join(f"{r.old_path} {r.new_path} {self.status}\n" for r in redirects)


REDIRECT_FORMATTERS = {
    "csv": CSVRedirectFormatter,
    "netlify": NetlifyRedirectFormatter,
}


def _normalize_path(path: str) -> str:
    path = "/" + (path or "").strip("/")
    return path


def generate_redirects(
    posts: SectionedPosts,
    *,
    post_type: str = "post",
    status: str = "publish",
) -> List[Redirect]:
    """Compute ``old path → /<section>/<slug>`` for every published post of ``post_type``.

    Posts whose permalink already matches the new path produce no entry,
    and neither do posts without a slug or whose permalink is the site
    root or a query string (``/?p=99``).
    """
    redirects: List[Redirect] = []
    for section, section_posts in posts.items():
        for post in section_posts:
            if post.type != post_type or post.status != status or not post.slug:
                continue
            link = urlparse(post.link)
            old_path = _normalize_path(link.path)
            if old_path == "/" or link.query:
                continue
            new_path = _normalize_path(f"{section}/{post.slug}")
            if old_path == new_path:
                continue
            redirects.append(Redirect(old_path, new_path))
    return redirects


class RedirectFileWriter:
    """Writes the redirects of a post set into a directory."""

    def __init__(self, formatter: RedirectFormatter) -> None:
        self.formatter = formatter

    def write_redirects(self, posts: SectionedPosts, directory: os.PathLike) -> Path:
        """Write the redirect file for ``posts`` into ``directory``.

        Parameters
        ----------
        posts:
            Posts grouped by section, as returned by the export decoder.
        directory:
            Destination directory.  It is created if needed.

        Returns
        -------
        Path
            The path of the generated file.

        Raises
        ------
        WriteError
            If the directory or file cannot be written.
        """
        text = self.formatter.format(generate_redirects(posts))
        out_path = Path(directory) / self.formatter.file_name
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise WriteError(f"Could not write redirects to {out_path}: {e}") from e
        return out_path
