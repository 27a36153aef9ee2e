"""
Extractors turning raw inputs into model records.

* :mod:`site_import.extractors.wordpress_extractor` – WXR exports to posts
* :mod:`site_import.extractors.asset_extractor` – upload URLs to asset imports
* :mod:`site_import.extractors.podcast_extractor` – RSS entries and videos to episodes
"""

from .asset_extractor import asset_pattern, asset_root_for, extract_asset_imports
from .podcast_extractor import episodes_based_on, parse_feed, videos_by_title
from .wordpress_extractor import WordPressExportDecoder, decode_export

__all__ = [
    "WordPressExportDecoder",
    "asset_pattern",
    "asset_root_for",
    "decode_export",
    "episodes_based_on",
    "extract_asset_imports",
    "parse_feed",
    "videos_by_title",
]
