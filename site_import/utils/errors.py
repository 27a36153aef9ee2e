"""
Error taxonomy and structured run reports for the import pipeline.

Fatal failures are raised as subclasses of :class:`SiteImportError` and
abort the run.  Non-fatal events (a single asset that could not be
downloaded, a post written successfully) are appended to JSON Lines
files under ``reports/import`` so that the information can be reviewed
or parsed after a run.

Two reporting functions are provided:

``report_error``
    Record a failure for a post, episode or asset.  An optional
    exception can be supplied and will be serialized to the log.

``report_ok``
    Record a successful step.  Additional key/value information can be
    attached to the entry via the ``extra`` parameter.

The ``ERRORS`` dictionary maps event codes to human readable messages.
Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional


class SiteImportError(Exception):
    """Base class for every error raised by the import pipeline."""


class DecodeError(SiteImportError):
    """An export or feed could not be parsed or lacks required data."""


class ExtractionError(SiteImportError):
    """Front matter or body content could not be extracted from a source."""


class MissingFieldError(ExtractionError):
    """A required metadata field is absent on a post or episode."""

    def __init__(self, field: str, subject: str = "") -> None:
        self.field = field
        self.subject = subject
        message = f"missing required field '{field}'"
        if subject:
            message += f" on {subject}"
        super().__init__(message)


class WriteError(SiteImportError):
    """A file or directory could not be written."""


class DownloadError(SiteImportError):
    """A single asset failed to download.  Collected, never fatal."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"{url}: {reason}")


class NoMatchError(SiteImportError):
    """A podcast episode and its video could not be paired."""


# Mapping of event codes used throughout the import to descriptive messages.
ERRORS: Dict[str, str] = {
    "ASSET_DOWNLOAD": "Failed to download asset",
    "ASSET_PATH": "Asset destination path is not writable",
    "ASSET_SKIPPED": "Asset already exists, skipped",
    "ASSET_DOWNLOADED": "Asset downloaded",
    "MARKDOWN_WRITTEN": "Markdown file written",
    "MARKDOWN_EXISTS": "Markdown file already exists, skipped",
    "EPISODE_WRITTEN": "Episode file written",
}

REPORT_DIR = os.path.join("reports", "import")


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, default=str)
        f.write("\n")


def report_error(
    code: str,
    subject: Dict[str, Any],
    exc: Optional[Exception] = None,
    *,
    report_dir: Optional[str] = None,
) -> None:
    """Log an error event for ``subject``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    subject:
        A small dictionary describing what failed, typically with
        ``slug``/``title`` or ``url`` keys.
    exc:
        Optional exception instance that triggered the error.
    report_dir:
        Directory holding the JSONL files.  Defaults to :data:`REPORT_DIR`.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {"code": code, "message": message, **subject}
    if exc is not None:
        entry["error"] = str(exc)
    _write_jsonl(os.path.join(report_dir or REPORT_DIR, "errors.jsonl"), entry)


def report_ok(
    code: str,
    subject: Dict[str, Any],
    extra: Optional[Dict[str, Any]] = None,
    *,
    report_dir: Optional[str] = None,
) -> None:
    """Log a successful event for ``subject``.

    Parameters
    ----------
    code:
        A key identifying the type of event.
    subject:
        A small dictionary describing what succeeded.
    extra:
        Optional dictionary of additional fields to merge into the entry.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {"code": code, "message": message, **subject}
    if extra:
        entry.update(extra)
    _write_jsonl(os.path.join(report_dir or REPORT_DIR, "success.jsonl"), entry)
