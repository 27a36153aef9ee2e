"""
Top-level package for the static-site content importer.

This package bundles everything needed to turn WordPress exports and a
podcast feed into Markdown files with YAML front matter.  Modules are
split into subpackages:

* :mod:`site_import.models` – immutable records (posts, assets, episodes)
* :mod:`site_import.extractors` – WXR export, asset and RSS extraction
* :mod:`site_import.parsers` – HTML to Markdown and front matter
* :mod:`site_import.writers` – asset downloads and Markdown files
* :mod:`site_import.services` – YouTube Data API client
* :mod:`site_import.utils` – errors, reports, filters and redirects

Each layer has no knowledge of configuration or execution strategy;
orchestration is handled in :mod:`site_import.processor`.
"""

__version__ = "0.1.0"
