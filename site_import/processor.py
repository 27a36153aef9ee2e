"""
High-level orchestration of the imports.

:class:`WordPressMarkdownProcessor` ties together the export decoder,
redirect writer, asset extractor and downloader and the Markdown content
builder into a fixed pipeline:

1. decode the WordPress exports into posts grouped by section;
2. write redirects for every decoded post;
3. compute the root-relative directory of imported assets;
4. extract asset imports from the bodies of posts of type ``post``;
5. download the assets (best effort, see
   :mod:`site_import.writers.asset_downloader`);
6. rewrite upload URLs in post bodies to the asset root;
7. write a Markdown file for every post that passes the filter chain.

Any fatal error aborts the run; there is no partial retry.  Collaborators
are passed to the constructor; :func:`build_processor` is the one place
that wires the default implementations.

:class:`PodcastImporter` does the same for podcast episodes: fetch the
RSS feed and the playlist videos, join them by title, write the episodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from site_import.extractors.asset_extractor import (
    UPLOADS_PATH,
    asset_pattern,
    asset_root_for,
    extract_asset_imports,
)
from site_import.extractors.podcast_extractor import (
    FeedItem,
    PodcastIDFunction,
    download_rss,
    episodes_based_on,
    parse_feed,
    transistor_podcast_id,
    videos_by_title,
)
from site_import.extractors.wordpress_extractor import PostsExportDecoder, WordPressExportDecoder
from site_import.models.asset_import import AssetImport
from site_import.models.episode import Episode, Video
from site_import.models.post import Post, SectionedPosts
from site_import.models.sources import WordPressSource
from site_import.parsers.front_matter import FrontMatterYAMLExporter, PostFrontMatterTranslator
from site_import.parsers.markdown_parser import FilteredHTMLMarkdownExtractor, HTMLToMarkdown, markdown_from_html
from site_import.settings import Settings
from site_import.utils.errors import WriteError, report_ok
from site_import.utils.filters import PostFilterChain, default_post_filters, post_satisfies_all
from site_import.utils.log import log_message
from site_import.utils.redirects import (
    NetlifyRedirectFormatter,
    RedirectFileWriter,
    RedirectFormatter,
)
from site_import.writers.asset_downloader import AssetDownloader, DownloadSummary
from site_import.writers.content_builder import (
    ContentURLGenerator,
    MarkdownContentBuilder,
    SectionContentURLGenerator,
)
from site_import.writers.podcast_writer import write_episodes


@dataclass
class ProcessSummary:
    posts: int = 0
    redirects_path: Optional[Path] = None
    asset_imports: List[AssetImport] = field(default_factory=list)
    downloads: Optional[DownloadSummary] = None
    written: List[Path] = field(default_factory=list)
    existing: List[Path] = field(default_factory=list)


def body_rewriter(asset_site_url: str, asset_root: str) -> Callable[[Post], str]:
    """Build a function returning a post body with upload URLs pointing at ``asset_root``."""
    uploads_url = asset_site_url.rstrip("/") + UPLOADS_PATH

    def html_from_post(post: Post) -> str:
        return post.body.replace(uploads_url, asset_root)

    return html_from_post


class WordPressMarkdownProcessor:
    """Processes WordPress exports into Markdown files, one per post."""

    def __init__(
        self,
        export_decoder: PostsExportDecoder,
        redirect_writer: RedirectFileWriter,
        asset_downloader: AssetDownloader,
        destination_url_generator: ContentURLGenerator,
        content_builder: MarkdownContentBuilder,
        post_filters: PostFilterChain,
        html_to_markdown: HTMLToMarkdown = markdown_from_html,
    ) -> None:
        self.export_decoder = export_decoder
        self.redirect_writer = redirect_writer
        self.asset_downloader = asset_downloader
        self.destination_url_generator = destination_url_generator
        self.content_builder = content_builder
        self.post_filters = post_filters
        self.html_to_markdown = html_to_markdown
        self.log_dir: Optional[str] = None

    def log_message(self, message: str, level: str = "INFO") -> None:
        log_message(message, level, log_dir=self.log_dir)

    def write_all_posts(
        self,
        all_posts: SectionedPosts,
        assets: List[AssetImport],
        settings: Settings,
        html_from_post: Optional[Callable[[Post], str]] = None,
        summary: Optional[ProcessSummary] = None,
    ) -> ProcessSummary:
        """Write every post that passes the filter chain below ``settings.content_dir``.

        The featured image of a post is the first asset imported from it.
        """
        if summary is None:
            summary = ProcessSummary()
        featured: Dict[int, str] = {}
        for asset in assets:
            featured.setdefault(asset.parent_id, asset.featured_path)

        content_dir = Path(settings.content_dir)
        for section_name, posts in all_posts.items():
            try:
                (content_dir / section_name).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise WriteError(f"Could not create section directory {section_name}: {e}") from e
            for post in posts:
                if not post_satisfies_all(self.post_filters, post):
                    continue
                source = WordPressSource(
                    section_name=section_name,
                    post=post,
                    featured_image=featured.get(post.id),
                    html=html_from_post(post) if html_from_post else None,
                )
                path = self.content_builder.write(
                    source,
                    content_dir,
                    self.destination_url_generator,
                    self.html_to_markdown,
                    overwrite_existing=settings.overwrite_existing,
                )
                subject = {"slug": post.slug, "title": post.title, "section": section_name}
                if path is None:
                    summary.existing.append(self.destination_url_generator.destination_path(source, content_dir))
                    continue
                summary.written.append(path)
                report_ok("MARKDOWN_WRITTEN", subject, {"path": str(path)}, report_dir=self.log_dir)
        return summary

    def begin(self, settings: Settings) -> ProcessSummary:
        """Run the whole pipeline with ``settings``.

        :raises SiteImportError: on any fatal error; nothing after the
            failing step runs.
        """
        self.log_dir = str(settings.reports_dir)
        summary = ProcessSummary()

        # 1. Decode WordPress posts from the exports directory.
        all_posts = self.export_decoder.posts(str(settings.exports_dir))
        summary.posts = sum(len(posts) for posts in all_posts.values())
        self.log_message(f"Decoded {summary.posts} items in {len(all_posts)} sections")

        # 2. Write redirects for all decoded posts.
        summary.redirects_path = self.redirect_writer.write_redirects(all_posts, settings.resources_dir)
        self.log_message(f"Redirects written to {summary.redirects_path}")

        # 3. Asset root under the resources directory.
        asset_root = asset_root_for(settings)

        # 4. Asset imports from every post of type "post".
        summary.asset_imports = extract_asset_imports(
            [post for posts in all_posts.values() for post in posts if post.type == "post"],
            asset_pattern(settings.asset_site_url),
            asset_root,
            settings,
        )
        self.log_message(f"Found {len(summary.asset_imports)} asset references")

        # 5. Download the assets.
        summary.downloads = self.asset_downloader.download(
            summary.asset_imports,
            dry_run=settings.skip_download,
            allows_overwrites=settings.overwrite_assets,
        )

        # 6. Point upload URLs at the asset root.
        html_from_post = body_rewriter(settings.asset_site_url, asset_root)

        # 7. Write the Markdown files.
        self.write_all_posts(all_posts, summary.asset_imports, settings, html_from_post, summary)
        self.log_message(
            f"Wrote {len(summary.written)} Markdown files, kept {len(summary.existing)} existing"
        )
        return summary


def build_processor(
    settings: Settings,
    *,
    redirect_formatter: Optional[RedirectFormatter] = None,
    post_filters: Optional[PostFilterChain] = None,
    export_decoder: Optional[PostsExportDecoder] = None,
    asset_downloader: Optional[AssetDownloader] = None,
    require_featured_image: bool = False,
    html_to_markdown: HTMLToMarkdown = markdown_from_html,
) -> WordPressMarkdownProcessor:
    """Wire a :class:`WordPressMarkdownProcessor` with the default collaborators."""
    if asset_downloader is None:
        asset_downloader = AssetDownloader(
            max_workers=settings.download_workers,
            timeout=settings.download_timeout,
            retries=settings.download_retries,
            deadline=settings.run_deadline,
            report_dir=str(settings.reports_dir),
        )
    content_builder = MarkdownContentBuilder(
        FrontMatterYAMLExporter(PostFrontMatterTranslator(require_featured_image=require_featured_image)),
        FilteredHTMLMarkdownExtractor(),
    )
    return WordPressMarkdownProcessor(
        export_decoder=export_decoder or WordPressExportDecoder(),
        redirect_writer=RedirectFileWriter(redirect_formatter or NetlifyRedirectFormatter()),
        asset_downloader=asset_downloader,
        destination_url_generator=SectionContentURLGenerator(),
        content_builder=content_builder,
        post_filters=default_post_filters() if post_filters is None else post_filters,
        html_to_markdown=html_to_markdown,
    )


class PodcastImporter:
    """Imports podcast episodes from an RSS feed and a YouTube playlist."""

    def __init__(
        self,
        fetch_rss: Callable[[str], bytes],
        list_videos: Callable[[str], List[Video]],
        *,
        podcast_id: PodcastIDFunction = transistor_podcast_id,
        builder: Optional[MarkdownContentBuilder] = None,
        html_to_markdown: HTMLToMarkdown = markdown_from_html,
        report_dir: Optional[str] = None,
    ) -> None:
        self.fetch_rss = fetch_rss
        self.list_videos = list_videos
        self.podcast_id = podcast_id
        self.builder = builder
        self.html_to_markdown = html_to_markdown
        self.report_dir = report_dir

    def episodes(self, rss_url: str, playlist_id: str) -> List[Episode]:
        """Fetched and joined episodes, sorted by episode number."""
        items: List[FeedItem] = parse_feed(self.fetch_rss(rss_url))
        videos = videos_by_title(self.list_videos(playlist_id))
        log_message(f"Found {len(items)} feed items and {len(videos)} videos", log_dir=self.report_dir)
        episodes = episodes_based_on(items, videos, self.podcast_id)
        return sorted(episodes, key=lambda episode: episode.episode_no)

    def run(
        self,
        rss_url: str,
        playlist_id: str,
        content_dir: Path,
        *,
        overwrite_existing: bool = False,
        include_missing_previous: bool = False,
    ) -> List[Path]:
        return write_episodes(
            self.episodes(rss_url, playlist_id),
            content_dir,
            self.html_to_markdown,
            builder=self.builder,
            overwrite_existing=overwrite_existing,
            include_missing_previous=include_missing_previous,
            report_dir=self.report_dir,
        )


def build_podcast_importer(youtube_client, *, timeout: float = 30.0, report_dir: Optional[str] = None) -> PodcastImporter:
    """Wire a :class:`PodcastImporter` fetching RSS with ``requests``."""
    return PodcastImporter(
        fetch_rss=lambda url: download_rss(url, timeout=timeout),
        list_videos=youtube_client.playlist_videos,
        report_dir=report_dir,
    )
