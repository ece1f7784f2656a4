"""Download stage: fetch every record's media file into the videos directory.

Each item is independent. A failed fetch becomes a failed DownloadResult for
that index and never stops its siblings. Files that already exist are not
fetched again, so re-running a partially completed batch only downloads what
is missing.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import as_completed, ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

import requests

from ... import config, config_constants, dataset, downloader
from ...exceptions import ItemDownloadError
from ...models import DownloadResult, EnrichedRecord, SourceRecord
from ...utils import filesystem, progress
from ..metrics import Metrics
from ..types import DownloadOutcome

logger = logging.getLogger(__name__)


def download_media(
    index: int, url: Optional[str], videos_dir: str, cfg: config.Config
) -> DownloadResult:
    """Fetch one media file to its deterministic path.

    Returns a successful result without fetching when the file is already
    present, and a failed result (never an exception) on any fetch error.
    """
    path = filesystem.build_media_path(index, videos_dir)
    if os.path.exists(path):
        logger.debug("[%d] Media already present at %s; skipping fetch", index, path)
        return DownloadResult.ok(index, path, skipped=True)

    try:
        if not url:
            raise ItemDownloadError(index, "record has no media URL")
        try:
            written = downloader.http_download_to_file(url, cfg.user_agent, cfg.timeout, path)
        except (requests.RequestException, OSError) as exc:
            raise ItemDownloadError(index, f"{type(exc).__name__}: {exc}") from exc
    except ItemDownloadError as exc:
        logger.warning("Failed to download video %d: %s", index, exc.reason)
        return DownloadResult.failed(index, exc.reason)

    return DownloadResult.ok(index, path, bytes_downloaded=written)


def _download_sequential(
    urls: Sequence[Optional[str]], videos_dir: str, cfg: config.Config
) -> List[DownloadResult]:
    results: List[DownloadResult] = []
    total = len(urls)
    with progress.progress_context(total, "Downloading videos") as reporter:
        for index, url in enumerate(urls):
            logger.info("Downloading video %d/%d", index + 1, total)
            results.append(download_media(index, url, videos_dir, cfg))
            reporter.update(1)
    return results


def _download_parallel(
    urls: Sequence[Optional[str]], videos_dir: str, cfg: config.Config
) -> List[DownloadResult]:
    results: List[DownloadResult] = []
    max_workers = min(cfg.download_workers, len(urls))
    logger.info("Downloading %d videos with %d workers", len(urls), max_workers)
    with (
        progress.progress_context(len(urls), "Downloading videos") as reporter,
        ThreadPoolExecutor(max_workers=max_workers) as executor,
    ):
        future_map = {
            executor.submit(download_media, index, url, videos_dir, cfg): index
            for index, url in enumerate(urls)
        }
        for future in as_completed(future_map):
            index = future_map[future]
            try:
                results.append(future.result())
            except Exception as exc:  # noqa: BLE001 - one item must not sink the batch
                logger.error("Unexpected error downloading video %d: %s", index, exc)
                results.append(DownloadResult.failed(index, f"{type(exc).__name__}: {exc}"))
            reporter.update(1)
    results.sort(key=lambda result: result.index)
    return results


def download_all(
    urls: Sequence[Optional[str]], videos_dir: str, cfg: config.Config
) -> List[DownloadResult]:
    """Download every URL; position ``i`` in ``urls`` is the record index.

    Returns exactly one result per input position, ordered by index.
    """
    if not urls:
        logger.info("No videos to download")
        return []
    if cfg.parallel_download and len(urls) > 1:
        results = _download_parallel(urls, videos_dir, cfg)
    else:
        results = _download_sequential(urls, videos_dir, cfg)

    succeeded = sum(1 for result in results if result.success)
    skipped = sum(1 for result in results if result.skipped)
    logger.info(
        "Downloads finished: %d succeeded (%d already present), %d failed",
        succeeded,
        skipped,
        len(results) - succeeded,
    )
    return results


def apply_downloads(
    records: Sequence[SourceRecord], results: Sequence[DownloadResult]
) -> List[EnrichedRecord]:
    """Build enriched records with ``video_path`` set for each successful download."""
    paths: Dict[int, str] = {
        result.index: result.path for result in results if result.success and result.path
    }
    return [EnrichedRecord(source=record, video_path=paths.get(record.index)) for record in records]


def download_stage(
    records: Sequence[SourceRecord],
    workspace: filesystem.Workspace,
    cfg: config.Config,
    pipeline_metrics: Optional[Metrics] = None,
) -> DownloadOutcome:
    """Download all media and write the ``video_dataset.json`` checkpoint."""
    urls = [record.media_url for record in records]
    results = download_all(urls, workspace.videos_dir, cfg)
    enriched = apply_downloads(records, results)
    checkpoint_path = dataset.save_records(
        enriched, workspace.artifact(config_constants.CHECKPOINT_FILENAME)
    )
    logger.info("Download checkpoint saved to %s", checkpoint_path)

    if pipeline_metrics is not None:
        pipeline_metrics.downloads_succeeded += sum(1 for r in results if r.success)
        pipeline_metrics.downloads_skipped += sum(1 for r in results if r.skipped)
        pipeline_metrics.downloads_failed += sum(1 for r in results if not r.success)
        pipeline_metrics.bytes_downloaded_total += sum(r.bytes_downloaded for r in results)
    return DownloadOutcome(results=results, enriched=enriched, checkpoint_path=checkpoint_path)
