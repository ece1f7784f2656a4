"""Merge/export stage: fold item results onto the scraped records and persist them."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ... import config_constants, dataset
from ...models import DownloadResult, EnrichedRecord, SourceRecord, TranscriptionResult
from ...utils import filesystem
from ..metrics import Metrics
from ..types import ExportPaths

logger = logging.getLogger(__name__)


def merge_results(
    base_records: Sequence[SourceRecord],
    download_results: Sequence[DownloadResult],
    transcription_results: Sequence[TranscriptionResult],
) -> List[EnrichedRecord]:
    """Apply successful results to their records by index.

    Every record starts with null enrichment fields; failed results leave them
    null. Results whose index matches no record are dropped with a warning.
    """
    enriched = [EnrichedRecord(source=record) for record in base_records]
    by_index = {record.index: record for record in enriched}

    for result in download_results:
        target = by_index.get(result.index)
        if target is None:
            logger.warning("Ignoring download result for unknown index %d", result.index)
            continue
        if result.success:
            target.video_path = result.path

    for result in transcription_results:
        target = by_index.get(result.index)
        if target is None:
            logger.warning("Ignoring transcription result for unknown index %d", result.index)
            continue
        if result.success:
            target.transcription_text = result.text
            target.transcription_language = result.language

    return enriched


def export_dataset(
    enriched: Sequence[EnrichedRecord],
    workspace: filesystem.Workspace,
    pipeline_metrics: Optional[Metrics] = None,
) -> ExportPaths:
    """Write ``merged_dataset.json`` and ``analysis_dataset.csv``."""
    merged_path = dataset.save_records(
        enriched, workspace.artifact(config_constants.MERGED_DATASET_FILENAME)
    )
    analysis_path = dataset.write_analysis_csv(
        enriched, workspace.artifact(config_constants.ANALYSIS_DATASET_FILENAME)
    )
    logger.info("Merged dataset saved to %s", merged_path)
    logger.info("Analysis dataset saved to %s (%d rows)", analysis_path, len(enriched))
    if pipeline_metrics is not None:
        pipeline_metrics.rows_exported = len(enriched)
    return ExportPaths(merged_dataset=merged_path, analysis_dataset=analysis_path)
