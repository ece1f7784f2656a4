"""Transcription stage: run every downloaded video through the provider.

Only records with a ``video_path`` are transcribed. Every result carries the
index of the record it came from, whether it succeeded or not.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import as_completed, ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

from ... import config
from ...exceptions import FileMissingError, ItemTranscriptionError
from ...models import EnrichedRecord, TranscriptionResult
from ...transcription import TranscriptionProvider
from ...utils import filesystem, progress
from ..metrics import Metrics

logger = logging.getLogger(__name__)


def transcribe_media(
    index: int,
    media_path: str,
    provider: TranscriptionProvider,
    transcripts_dir: str,
) -> TranscriptionResult:
    """Transcribe one file and write its transcript; never raises for item errors."""
    try:
        if not os.path.exists(media_path):
            raise FileMissingError(index, f"media file not found: {media_path}")
        try:
            transcript = provider.transcribe(media_path)
            transcript_path = filesystem.build_transcript_path(index, transcripts_dir)
            filesystem.write_text_atomic(transcript_path, transcript.text)
        except Exception as exc:  # noqa: BLE001 - backend errors are per item
            raise ItemTranscriptionError(index, f"{type(exc).__name__}: {exc}") from exc
    except ItemTranscriptionError as exc:
        logger.warning("Failed to transcribe video %d: %s", index, exc.reason)
        return TranscriptionResult.failed(index, exc.reason, exc.kind)

    logger.debug("[%d] Transcript saved to %s", index, transcript_path)
    return TranscriptionResult.ok(index, transcript, transcript_path)


def select_transcription_jobs(records: Sequence[EnrichedRecord]) -> List[Tuple[int, str]]:
    """Return (index, video_path) for every record that has a downloaded file."""
    return [(record.index, record.video_path) for record in records if record.video_path]


def _transcribe_sequential(
    jobs: Sequence[Tuple[int, str]], provider: TranscriptionProvider, transcripts_dir: str
) -> List[TranscriptionResult]:
    results: List[TranscriptionResult] = []
    with progress.progress_context(len(jobs), "Transcribing videos") as reporter:
        for position, (index, path) in enumerate(jobs, start=1):
            logger.info("Transcribing video %d/%d", position, len(jobs))
            results.append(transcribe_media(index, path, provider, transcripts_dir))
            reporter.update(1)
    return results


def _transcribe_parallel(
    jobs: Sequence[Tuple[int, str]],
    provider: TranscriptionProvider,
    transcripts_dir: str,
    max_workers: int,
) -> List[TranscriptionResult]:
    logger.warning(
        "Parallel transcription enabled with %d workers; each loads its own Whisper model",
        max_workers,
    )
    results: List[TranscriptionResult] = []
    with (
        progress.progress_context(len(jobs), "Transcribing videos") as reporter,
        ThreadPoolExecutor(max_workers=max_workers) as executor,
    ):
        future_map = {
            executor.submit(transcribe_media, index, path, provider, transcripts_dir): index
            for index, path in jobs
        }
        for future in as_completed(future_map):
            index = future_map[future]
            try:
                results.append(future.result())
            except Exception as exc:  # noqa: BLE001 - one item must not sink the batch
                logger.error("Unexpected error transcribing video %d: %s", index, exc)
                results.append(
                    TranscriptionResult.failed(
                        index, f"{type(exc).__name__}: {exc}", ItemTranscriptionError.kind
                    )
                )
            reporter.update(1)
    results.sort(key=lambda result: result.index)
    return results


def transcribe_all(
    records: Sequence[EnrichedRecord],
    provider: TranscriptionProvider,
    transcripts_dir: str,
    cfg: config.Config,
    pipeline_metrics: Optional[Metrics] = None,
) -> List[TranscriptionResult]:
    """Transcribe every record that has a ``video_path``.

    Returns one result per selected record, ordered by index. An empty
    selection returns an empty list.
    """
    jobs = select_transcription_jobs(records)
    if not jobs:
        logger.info("No videos to transcribe")
        return []

    workers = min(cfg.transcription_workers, len(jobs))
    if cfg.parallel_transcription and workers > 1:
        results = _transcribe_parallel(jobs, provider, transcripts_dir, workers)
    else:
        results = _transcribe_sequential(jobs, provider, transcripts_dir)

    succeeded = sum(1 for result in results if result.success)
    missing = sum(1 for result in results if result.error_kind == FileMissingError.kind)
    logger.info(
        "Transcription finished: %d succeeded, %d failed (%d missing files)",
        succeeded,
        len(results) - succeeded,
        missing,
    )
    if pipeline_metrics is not None:
        pipeline_metrics.transcriptions_succeeded += succeeded
        pipeline_metrics.transcriptions_failed += len(results) - succeeded
        pipeline_metrics.files_missing += missing
    return results
