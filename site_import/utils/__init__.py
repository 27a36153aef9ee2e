"""
Utility helpers used by the importers.

This subpackage exposes the error taxonomy, structured reports, the post
filter chain and redirect map generation.
"""

from .errors import (
    ERRORS,
    DecodeError,
    DownloadError,
    ExtractionError,
    MissingFieldError,
    NoMatchError,
    SiteImportError,
    WriteError,
    report_error,
    report_ok,
)
from .filters import default_post_filters, post_satisfies_all
from .redirects import RedirectFileWriter, generate_redirects

__all__ = [
    "ERRORS",
    "DecodeError",
    "DownloadError",
    "ExtractionError",
    "MissingFieldError",
    "NoMatchError",
    "RedirectFileWriter",
    "SiteImportError",
    "WriteError",
    "default_post_filters",
    "generate_redirects",
    "post_satisfies_all",
    "report_error",
    "report_ok",
]
