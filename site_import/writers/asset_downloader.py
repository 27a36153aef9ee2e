"""
Best-effort download of imported assets.

Each :class:`~site_import.models.asset_import.AssetImport` is fetched to
its destination path.  Downloads are independent of each other: a
failure is wrapped into a :class:`~site_import.utils.errors.DownloadError`,
logged, written to the error report and collected in the returned
:class:`DownloadSummary`, and the batch carries on.  Whether missing
assets are fatal is up to the caller.

Transient network failures (HTTP 429, 5xx and connection errors) are
retried with exponential backoff.  Downloads run on a bounded thread
pool; results are reported in input order whatever the completion order,
and destination paths depend only on the source URL.
"""

from __future__ import annotations

import os
import shutil
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import requests

from site_import.models.asset_import import AssetImport
from site_import.utils.errors import DownloadError, report_error, report_ok
from site_import.utils.log import log_message

Fetch = Callable[[str, float], bytes]

DOWNLOADED = "downloaded"
SKIPPED = "skipped"
FAILED = "failed"

RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


def with_retries(
    fn: Callable[[], requests.Response],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.7,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying on
    transient HTTP errors.  Retries are attempted on status codes 429
    and 5xx and on connection errors.  Backoff is exponential and
    honors a numeric ``Retry-After`` header.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param max_attempts: Maximum number of attempts before giving up.
    :param base_delay: Base delay in seconds for exponential backoff.
    :return: The successful ``requests.Response``.
    :raises requests.RequestException: if all attempts fail.
    """
    attempt = 0
    while True:
        try:
            resp = fn()
            resp.raise_for_status()
            return resp
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status not in RETRY_STATUS_CODES or attempt >= max_attempts - 1:
                raise
            retry_after = e.response.headers.get("Retry-After")
            try:
                wait_for = float(retry_after) if retry_after else base_delay * (2 ** attempt)
            except ValueError:
                wait_for = base_delay * (2 ** attempt)
            sleep_fn(wait_for)
            attempt += 1
        except requests.RequestException:
            if attempt >= max_attempts - 1:
                raise
            sleep_fn(base_delay * (2 ** attempt))
            attempt += 1


def requests_fetch(session: Optional[requests.Session] = None, *, retries: int = 3) -> Fetch:
    """Build a :data:`Fetch` primitive on top of a ``requests`` session."""
    http = session or requests.Session()

    def fetch(url: str, timeout: float) -> bytes:
        resp = with_retries(lambda: http.get(url, timeout=timeout), max_attempts=retries)
        return resp.content

    return fetch


@dataclass
class DownloadSummary:
    """Outcome of a download batch.  ``assets`` is the full input list."""

    assets: List[AssetImport]
    dry_run: bool = False
    downloaded: List[AssetImport] = field(default_factory=list)
    skipped: List[AssetImport] = field(default_factory=list)
    failed: List[DownloadError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _blocking_ancestor(path: Path) -> Optional[Path]:
    """Return the first ancestor of ``path`` that exists but is not a directory."""
    for parent in reversed(path.parents):
        if parent.exists() and not parent.is_dir():
            return parent
    return None


class AssetDownloader:
    """Fetches asset imports to their destination paths."""

    def __init__(
        self,
        fetch: Optional[Fetch] = None,
        *,
        max_workers: int = 4,
        timeout: float = 30.0,
        retries: int = 3,
        deadline: Optional[float] = None,
        report_dir: Optional[str] = None,
    ) -> None:
        self.fetch = fetch or requests_fetch(retries=retries)
        self.max_workers = max(1, max_workers)
        self.timeout = timeout
        self.deadline = deadline
        self.report_dir = report_dir

    def download(
        self,
        assets: Iterable[AssetImport],
        dry_run: bool = False,
        allows_overwrites: bool = False,
    ) -> DownloadSummary:
        """Download ``assets``; see the module documentation for the policy.

        :param assets: Asset imports to fetch.  Several imports sharing a
            destination (the same URL in different posts) are fetched once.
        :param dry_run: Validate destinations only; no network and no writes.
        :param allows_overwrites: Replace destination files that already exist.
        """
        assets = list(assets)
        summary = DownloadSummary(assets=assets, dry_run=dry_run)

        jobs: Dict[Path, AssetImport] = {}
        for asset in assets:
            jobs.setdefault(Path(asset.destination_path), asset)

        results: Dict[Path, object] = {}
        pending: List[AssetImport] = []
        for path, asset in jobs.items():
            blocked = self._validate(path)
            if blocked is not None:
                results[path] = DownloadError(asset.source_url, blocked)
            elif path.exists() and not allows_overwrites:
                results[path] = SKIPPED
            elif dry_run:
                results[path] = DOWNLOADED
            else:
                pending.append(asset)

        results.update(self._run(pending))

        for path, asset in jobs.items():
            outcome = results[path]
            if isinstance(outcome, DownloadError):
                summary.failed.append(outcome)
                log_message(f"Could not download {outcome.url}: {outcome.reason}", "WARNING", log_dir=self.report_dir)
                if not dry_run:
                    report_error(
                        "ASSET_DOWNLOAD",
                        {"url": asset.source_url, "path": str(path), "post_id": asset.parent_id},
                        outcome,
                        report_dir=self.report_dir,
                    )
            elif outcome == SKIPPED:
                summary.skipped.append(asset)
            else:
                summary.downloaded.append(asset)
                if not dry_run:
                    report_ok("ASSET_DOWNLOADED", {"url": asset.source_url, "path": str(path)}, report_dir=self.report_dir)

        verb = "Would download" if dry_run else "Downloaded"
        log_message(
            f"{verb} {len(summary.downloaded)} assets, skipped {len(summary.skipped)}, "
            f"failed {len(summary.failed)}",
            log_dir=self.report_dir,
        )
        return summary

    @staticmethod
    def _validate(path: Path) -> Optional[str]:
        if path.exists() and path.is_dir():
            return f"destination {path} is a directory"
        blocking = _blocking_ancestor(path)
        if blocking is not None:
            return f"{blocking} is not a directory"
        return None

    def _run(self, pending: List[AssetImport]) -> Dict[Path, object]:
        results: Dict[Path, object] = {}
        if not pending:
            return results

        if self.max_workers == 1:
            started = time.monotonic()
            for asset in pending:
                path = Path(asset.destination_path)
                if self.deadline is not None and time.monotonic() - started > self.deadline:
                    results[path] = DownloadError(asset.source_url, "run deadline exceeded")
                    continue
                results[path] = self._download_one(asset)
            return results

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = {executor.submit(self._download_one, asset): asset for asset in pending}
            done, not_done = wait(futures, timeout=self.deadline)
            for future in done:
                asset = futures[future]
                results[Path(asset.destination_path)] = future.result()
            for future in not_done:
                future.cancel()
                asset = futures[future]
                results[Path(asset.destination_path)] = DownloadError(asset.source_url, "run deadline exceeded")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return results

    def _download_one(self, asset: AssetImport) -> object:
        path = Path(asset.destination_path)
        tmp_path = path.with_name(path.name + ".part")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if asset.import_path is not None and Path(asset.import_path).is_file():
                shutil.copyfile(asset.import_path, tmp_path)
            else:
                data = self.fetch(asset.source_url, self.timeout)
                tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
            return DOWNLOADED
        except DownloadError as e:
            return e
        except (requests.RequestException, OSError) as e:
            if tmp_path.exists():
                tmp_path.unlink()
            return DownloadError(asset.source_url, str(e))
