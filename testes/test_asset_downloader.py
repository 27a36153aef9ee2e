import threading
import time
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from site_import.models.asset_import import AssetImport
from site_import.writers.asset_downloader import AssetDownloader, with_retries


class FakeFetch:
    def __init__(self, failures=()):
        self.calls = []
        self.failures = set(failures)
        self._lock = threading.Lock()

    def __call__(self, url, timeout):
        with self._lock:
            self.calls.append(url)
        if url in self.failures:
            raise requests.ConnectionError("connection refused")
        return f"data:{url}".encode()


def make_asset(root, name, parent_id=1):
    return AssetImport(
        parent_id=parent_id,
        source_url=f"https://leogdion.name/wp-content/uploads/2019/08/{name}",
        destination_path=Path(root) / "media" / "leogdion" / "2019" / "08" / name,
        featured_path=f"/media/leogdion/2019/08/{name}",
    )


@pytest.fixture
def resources(tmp_path):
    return tmp_path / "Resources"


def downloader(fetch, tmp_path, **kwargs):
    kwargs.setdefault("max_workers", 1)
    return AssetDownloader(fetch, report_dir=str(tmp_path / "reports"), **kwargs)


def test_downloads_every_asset(resources, tmp_path):
    fetch = FakeFetch()
    assets = [make_asset(resources, "a.png"), make_asset(resources, "b.png")]

    summary = downloader(fetch, tmp_path).download(assets)

    assert summary.ok
    assert summary.downloaded == assets
    assert assets[0].destination_path.read_bytes() == f"data:{assets[0].source_url}".encode()
    assert not list(resources.rglob("*.part"))


def test_dry_run_makes_no_calls_and_no_writes(resources, tmp_path):
    fetch = FakeFetch()
    assets = [make_asset(resources, "a.png"), make_asset(resources, "b.png")]

    summary = downloader(fetch, tmp_path).download(assets, dry_run=True)

    assert fetch.calls == []
    assert not resources.exists()
    assert summary.dry_run
    assert summary.assets == assets
    assert summary.downloaded == assets
    # Only the run log is written
    assert [p.name for p in tmp_path.iterdir()] == ["reports"]
    assert [p.name for p in (tmp_path / "reports").iterdir()] == ["import.log"]


def test_dry_run_reports_invalid_destinations(resources, tmp_path):
    resources.mkdir()
    (resources / "media").write_text("not a directory", encoding="utf-8")

    summary = downloader(FakeFetch(), tmp_path).download([make_asset(resources, "a.png")], dry_run=True)

    assert len(summary.failed) == 1
    assert "not a directory" in summary.failed[0].reason


def test_existing_files_are_skipped_unless_overwrites_allowed(resources, tmp_path):
    asset = make_asset(resources, "a.png")
    asset.destination_path.parent.mkdir(parents=True)
    asset.destination_path.write_bytes(b"old")
    fetch = FakeFetch()

    summary = downloader(fetch, tmp_path).download([asset])
    assert summary.skipped == [asset]
    assert asset.destination_path.read_bytes() == b"old"
    assert fetch.calls == []

    summary = downloader(fetch, tmp_path).download([asset], allows_overwrites=True)
    assert summary.downloaded == [asset]
    assert asset.destination_path.read_bytes() != b"old"


def test_failures_are_collected_and_do_not_stop_the_batch(resources, tmp_path):
    bad = make_asset(resources, "bad.png")
    good = make_asset(resources, "good.png")
    fetch = FakeFetch(failures={bad.source_url})

    summary = downloader(fetch, tmp_path).download([bad, good])

    assert [error.url for error in summary.failed] == [bad.source_url]
    assert summary.downloaded == [good]
    assert not bad.destination_path.exists()
    assert (tmp_path / "reports" / "errors.jsonl").read_text(encoding="utf-8").count("ASSET_DOWNLOAD") == 1


def test_shared_destination_is_fetched_once(resources, tmp_path):
    first = make_asset(resources, "a.png", parent_id=1)
    second = make_asset(resources, "a.png", parent_id=2)
    fetch = FakeFetch()

    summary = downloader(fetch, tmp_path).download([first, second])

    assert fetch.calls == [first.source_url]
    assert summary.assets == [first, second]


def test_local_import_mirror_is_copied(resources, tmp_path):
    mirror = tmp_path / "uploads" / "2019" / "08" / "a.png"
    mirror.parent.mkdir(parents=True)
    mirror.write_bytes(b"local")
    asset = make_asset(resources, "a.png").model_copy(update={"import_path": mirror})
    fetch = FakeFetch()

    downloader(fetch, tmp_path).download([asset])

    assert fetch.calls == []
    assert asset.destination_path.read_bytes() == b"local"


def test_parallel_results_keep_input_order(resources, tmp_path):
    names = [f"{i:02d}.png" for i in range(12)]
    assets = [make_asset(resources, name) for name in names]
    failing = {assets[3].source_url, assets[7].source_url}

    summary = downloader(FakeFetch(failures=failing), tmp_path, max_workers=4).download(assets)

    assert summary.downloaded == [a for a in assets if a.source_url not in failing]
    assert [e.url for e in summary.failed] == [assets[3].source_url, assets[7].source_url]


def _response(status, headers=None):
    resp = Mock()
    resp.status_code = status
    resp.headers = headers or {}
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(response=resp)
    else:
        resp.raise_for_status.return_value = None
    return resp


def test_with_retries_retries_transient_errors():
    responses = [_response(503), _response(429, {"Retry-After": "2"}), _response(200)]
    sleeps = []

    resp = with_retries(lambda: responses.pop(0), max_attempts=3, base_delay=0.5, sleep_fn=sleeps.append)

    assert resp.status_code == 200
    assert sleeps == [0.5, 2.0]


def test_with_retries_does_not_retry_client_errors():
    sleeps = []
    with pytest.raises(requests.HTTPError):
        with_retries(lambda: _response(404), sleep_fn=sleeps.append)
    assert sleeps == []


class BlockingFetch:
    def __init__(self):
        self.release = threading.Event()

    def __call__(self, url, timeout):
        self.release.wait(5)
        return b"late"


def test_deadline_fails_unfinished_parallel_downloads(resources, tmp_path):
    assets = [make_asset(resources, name) for name in ("a.png", "b.png", "c.png")]
    fetch = BlockingFetch()
    try:
        summary = downloader(fetch, tmp_path, max_workers=2, deadline=0.2).download(assets)
    finally:
        fetch.release.set()

    assert summary.downloaded == []
    assert [e.url for e in summary.failed] == [a.source_url for a in assets]
    assert all(e.reason == "run deadline exceeded" for e in summary.failed)


def test_deadline_stops_sequential_downloads(resources, tmp_path):
    assets = [make_asset(resources, name) for name in ("a.png", "b.png", "c.png")]

    def slow_fetch(url, timeout):
        time.sleep(0.2)
        return b"data"

    summary = downloader(slow_fetch, tmp_path, max_workers=1, deadline=0.05).download(assets)

    assert summary.downloaded == assets[:1]
    assert [e.url for e in summary.failed] == [a.source_url for a in assets[1:]]
    assert all(e.reason == "run deadline exceeded" for e in summary.failed)
