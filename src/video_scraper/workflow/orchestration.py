"""Pipeline orchestration: fetch, download, transcribe, merge and export."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import List, Optional, Tuple

from .. import config, config_constants, dataset
from ..apify import ApifyClient
from ..exceptions import PreconditionError, VideoScraperError
from ..models import DownloadResult, EnrichedRecord, SourceRecord, TranscriptionResult
from ..transcription import TranscriptionProvider
from ..utils import filesystem
from . import stages as wf_stages
from .failure_log import FailureLog
from .metrics import Metrics
from .run_summary import create_run_summary, save_run_summary
from .types import PipelineResult

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def apply_log_level(level: str, log_file: Optional[str] = None) -> None:
    """Apply logging level to root logger and configure handlers.

    Args:
        level: Log level string (e.g., 'DEBUG', 'INFO', 'WARNING')
        log_file: Optional path to log file. If provided, logs will be written to both
                  console and file.

    Raises:
        ValueError: If log level is invalid
        OSError: If log file cannot be created or written to
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root_logger = logging.getLogger()
    formatter = logging.Formatter(LOG_FORMAT)

    if not root_logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)
    else:
        for handler in root_logger.handlers:
            handler.setLevel(numeric_level)
            handler.setFormatter(formatter)
    root_logger.setLevel(numeric_level)

    if log_file:
        file_handler_exists = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
            for h in root_logger.handlers
        )
        if not file_handler_exists:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)


def _load_from_checkpoint(
    workspace: filesystem.Workspace,
) -> Tuple[List[SourceRecord], List[DownloadResult], List[EnrichedRecord]]:
    checkpoint = workspace.artifact(config_constants.CHECKPOINT_FILENAME)
    try:
        records, download_results = dataset.load_checkpoint(checkpoint)
    except ValueError as exc:
        raise PreconditionError(
            str(exc), suggestion="Run once without --from-checkpoint to create it"
        ) from exc
    enriched = wf_stages.download.apply_downloads(records, download_results)
    return records, download_results, enriched


def _write_failure_log(
    workspace: filesystem.Workspace,
    run_id: Optional[str],
    download_results: List[DownloadResult],
    transcription_results: List[TranscriptionResult],
) -> Tuple[str, int]:
    path = workspace.artifact(config_constants.FAILURE_LOG_FILENAME)
    with FailureLog(path, run_id=run_id) as failure_log:
        failure_log.record_downloads(download_results)
        failure_log.record_transcriptions(transcription_results)
    return path, failure_log.count


def run_pipeline(
    cfg: config.Config,
    *,
    client: Optional[ApifyClient] = None,
    provider: Optional[TranscriptionProvider] = None,
) -> PipelineResult:
    """Execute the hashtag video pipeline.

    Stages, in order:

    1. Validate preconditions (working directory, API token)
    2. Create videos/ and transcriptions/ in the working directory
    3. Load the transcription model once
    4. Scrape records through Apify (skipped when resuming from checkpoint)
    5. Download media and write ``video_dataset.json`` (skipped when resuming)
    6. Transcribe every downloaded file
    7. Merge results by index and export ``merged_dataset.json`` and
       ``analysis_dataset.csv``
    8. Write ``run.json`` (and ``failures.jsonl`` when enabled)

    Args:
        cfg: Configuration object
        client: Apify client to use instead of one built from ``cfg``
        provider: Transcription provider to use instead of Whisper

    Returns:
        PipelineResult. Fatal errors (precondition, remote service,
        transcription backend) return ``success=False`` after logging; nothing
        after the failing stage runs and earlier checkpoints stay on disk.
        Item-level failures only show up in the counts.

    Example:
        >>> from video_scraper import Config, run_pipeline
        >>> cfg = Config(hashtag="bodyneutrality", working_dir="./data", max_results=20)
        >>> result = run_pipeline(cfg)
        >>> print(result.summary)
    """
    pipeline_metrics = Metrics()
    owns_provider = provider is None
    run_id: Optional[str] = None

    try:
        working_dir = wf_stages.setup.validate_preconditions(cfg)
        workspace = wf_stages.setup.setup_workspace(working_dir)
        if provider is None:
            provider = wf_stages.setup.load_transcription_provider(cfg, pipeline_metrics)
        else:
            provider.initialize()

        if cfg.resume_from_checkpoint:
            logger.info("Resuming from download checkpoint")
            records, download_results, enriched = _load_from_checkpoint(workspace)
        else:
            start = time.time()
            fetched = wf_stages.scraping.fetch_source_records(cfg, client)
            pipeline_metrics.record_stage("fetching", time.time() - start)
            run_id = fetched.run_id
            records = fetched.records

            start = time.time()
            downloaded = wf_stages.download.download_stage(
                records, workspace, cfg, pipeline_metrics
            )
            pipeline_metrics.record_stage("downloading", time.time() - start)
            download_results = downloaded.results
            enriched = downloaded.enriched
        pipeline_metrics.records_fetched = len(records)

        start = time.time()
        transcription_results = wf_stages.transcription.transcribe_all(
            enriched, provider, workspace.transcripts_dir, cfg, pipeline_metrics
        )
        pipeline_metrics.record_stage("transcribing", time.time() - start)

        start = time.time()
        merged = wf_stages.export.merge_results(records, download_results, transcription_results)
        export_paths = wf_stages.export.export_dataset(merged, workspace, pipeline_metrics)
        pipeline_metrics.record_stage("exporting", time.time() - start)
    except VideoScraperError as exc:
        logger.error("Pipeline aborted: %s", exc)
        return PipelineResult(success=False, error=str(exc), error_kind=type(exc).__name__)
    finally:
        if owns_provider and provider is not None:
            provider.cleanup()

    outputs = {
        "merged_dataset": export_paths.merged_dataset,
        "analysis_dataset": export_paths.analysis_dataset,
        "checkpoint": workspace.artifact(config_constants.CHECKPOINT_FILENAME),
    }
    if cfg.record_failures:
        failure_path, failure_count = _write_failure_log(
            workspace, run_id, download_results, transcription_results
        )
        outputs["failures"] = failure_path
        logger.info("Recorded %d item failures in %s", failure_count, failure_path)

    outputs["run_summary"] = save_run_summary(
        create_run_summary(cfg, pipeline_metrics, dict(outputs), run_id=run_id), workspace.root
    )
    pipeline_metrics.log_metrics()

    downloads_succeeded = sum(1 for result in download_results if result.success)
    transcriptions_succeeded = sum(1 for result in transcription_results if result.success)
    result = PipelineResult(
        success=True,
        records_total=len(records),
        downloads_succeeded=downloads_succeeded,
        downloads_failed=len(download_results) - downloads_succeeded,
        transcriptions_succeeded=transcriptions_succeeded,
        transcriptions_failed=len(transcription_results) - transcriptions_succeeded,
        outputs=outputs,
        transcription_results=list(transcription_results),
    )
    logger.info("Videos processed: %d", result.records_total)
    logger.info("Videos transcribed: %d", result.transcriptions_succeeded)
    return result
