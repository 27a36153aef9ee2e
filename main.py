"""
Entry point for the site content importer.

    python main.py wordpress [--skip-download] [--overwrite-existing] ...
    python main.py podcast --content-dir Content [--youtube-api-key KEY] ...
"""

import argparse
import sys

from site_import.processor import build_podcast_importer, build_processor
from site_import.services.youtube_client import YouTubeClient
from site_import.settings import DEFAULT_CONFIG_FILE, Settings, load_config
from site_import.utils.errors import SiteImportError
from site_import.utils.log import log_message
from site_import.utils.redirects import REDIRECT_FORMATTERS


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import WordPress exports and podcast episodes as Markdown.")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="Path to the JSON config file")
    commands = parser.add_subparsers(dest="command", required=True)

    wordpress = commands.add_parser("wordpress", help="Import WordPress export files")
    wordpress.add_argument("--exports-dir")
    wordpress.add_argument("--resources-dir")
    wordpress.add_argument("--resource-asset-dir")
    wordpress.add_argument("--import-asset-dir")
    wordpress.add_argument("--content-dir")
    wordpress.add_argument("--asset-site-url")
    wordpress.add_argument("--skip-download", action="store_true", default=None)
    wordpress.add_argument("--overwrite-assets", action="store_true", default=None)
    wordpress.add_argument("--overwrite-existing", action="store_true", default=None)
    wordpress.add_argument("--redirect-format", choices=sorted(REDIRECT_FORMATTERS))
    wordpress.add_argument("--require-featured-image", action="store_true")

    podcast = commands.add_parser("podcast", help="Import podcast episodes")
    podcast.add_argument("--playlist-id")
    podcast.add_argument("--youtube-api-key")
    podcast.add_argument("--rss")
    podcast.add_argument("--content-dir", help="Destination directory for markdown files.")
    podcast.add_argument("--overwrite-existing", action="store_true")
    podcast.add_argument("--include-missing-previous", action="store_true")
    return parser


def run_wordpress(config, args) -> None:
    settings = Settings.from_config(
        config,
        exports_dir=args.exports_dir,
        resources_dir=args.resources_dir,
        resource_asset_dir=args.resource_asset_dir,
        import_asset_dir=args.import_asset_dir,
        content_dir=args.content_dir,
        asset_site_url=args.asset_site_url,
        skip_download=args.skip_download,
        overwrite_assets=args.overwrite_assets,
        overwrite_existing=args.overwrite_existing,
    )
    if not settings.asset_site_url:
        raise SiteImportError("The WordPress site URL ('asset_site_url') is not configured.")

    formatter = REDIRECT_FORMATTERS[args.redirect_format or config["wordpress"]["redirect_format"]]()
    processor = build_processor(
        settings,
        redirect_formatter=formatter,
        require_featured_image=args.require_featured_image,
    )
    summary = processor.begin(settings)
    if summary.downloads and summary.downloads.failed:
        log_message(
            f"{len(summary.downloads.failed)} assets could not be downloaded; see the error report.",
            "WARNING",
            log_dir=str(settings.reports_dir),
        )


def run_podcast(config, args) -> None:
    podcast = config["podcast"]
    client = YouTubeClient(api_key=args.youtube_api_key or podcast["youtube_api_key"])
    importer = build_podcast_importer(client, report_dir=config["reports_dir"])
    importer.run(
        args.rss or podcast["rss_url"],
        args.playlist_id or podcast["playlist_id"],
        args.content_dir or podcast["content_dir"],
        overwrite_existing=args.overwrite_existing,
        include_missing_previous=args.include_missing_previous or podcast["include_missing_previous"],
    )


def main(argv=None) -> int:
    """
    Main function to run the importer.  Returns the process exit status.
    """
    args = _parser().parse_args(argv)
    config = load_config(args.config)
    log_message(f"Starting {args.command} import.", log_dir=config["reports_dir"])
    try:
        if args.command == "wordpress":
            run_wordpress(config, args)
        else:
            run_podcast(config, args)
    except (SiteImportError, ValueError) as e:
        log_message(f"Import failed: {e}", "ERROR", log_dir=config["reports_dir"])
        return 1
    log_message("Import finished.", log_dir=config["reports_dir"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
