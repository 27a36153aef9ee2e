from __future__ import annotations

import unicodedata
from urllib.parse import urlparse


def _strip_accents(text: str) -> str:
    return "".join(
        c for c in unicodedata.normalize("NFD", text) if unicodedata.category(c) != "Mn"
    )


def slugify(value: str) -> str:
    """Lowercase ``value`` and join its alphanumeric runs with dashes."""
    text = _strip_accents(value or "").strip().lower()
    out = []
    prev_dash = False
    for ch in text:
        if ch.isalnum():
            out.append(ch)
            prev_dash = False
        elif ch == "'":
            # Apostrophes vanish instead of splitting words ("it's" -> "its")
            continue
        else:
            if not prev_dash:
                out.append("-")
            prev_dash = True
    slug = "".join(out).strip("-")
    return slug[:200]


def slug_from_link(link: str) -> str:
    """Return the last non-empty path segment of ``link``."""
    path = urlparse(link or "").path
    if not path:
        return ""
    return path.strip("/").split("/")[-1]
