"""Dataset persistence: JSON checkpoints and the CSV analysis export."""

from __future__ import annotations

import csv
import json
import logging
import os
from typing import Any, Dict, List, Sequence, Tuple

from . import config_constants
from .models import (
    ANALYSIS_COLUMNS,
    AnalysisRow,
    DownloadResult,
    ENRICHMENT_FIELDS,
    EnrichedRecord,
    SourceRecord,
)

logger = logging.getLogger(__name__)


def _write_json_atomic(path: str, payload: Any) -> None:
    tmp_path = f"{path}{config_constants.PARTIAL_FILE_SUFFIX}"
    with open(tmp_path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2, default=str)
    os.replace(tmp_path, path)


def save_records(records: Sequence[EnrichedRecord], path: str) -> str:
    """Write enriched records as a JSON array, one object per record in index order."""
    ordered = sorted(records, key=lambda record: record.index)
    _write_json_atomic(path, [record.to_dict() for record in ordered])
    logger.debug("Wrote %d records to %s", len(ordered), path)
    return path


def load_checkpoint(path: str) -> Tuple[List[SourceRecord], List[DownloadResult]]:
    """Rebuild source records and download outcomes from a download checkpoint.

    Records are re-indexed by their position in the file. A record whose
    ``video_path`` is set becomes a successful download result; the rest are
    failures.

    Raises:
        ValueError: The file is missing, not JSON, or not a list of objects.
    """
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError as exc:
        raise ValueError(f"Checkpoint not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Unreadable checkpoint {path}: {exc}") from exc

    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(f"Checkpoint {path} must contain a JSON array of objects")

    records: List[SourceRecord] = []
    downloads: List[DownloadResult] = []
    for index, item in enumerate(data):
        raw: Dict[str, Any] = {k: v for k, v in item.items() if k not in ENRICHMENT_FIELDS}
        records.append(SourceRecord(index=index, raw=raw))
        video_path = item.get("video_path")
        if video_path:
            downloads.append(DownloadResult.ok(index, str(video_path), skipped=True))
        else:
            downloads.append(DownloadResult.failed(index, "not downloaded in checkpoint"))
    logger.info("Loaded %d records from checkpoint %s", len(records), path)
    return records, downloads


def write_analysis_csv(records: Sequence[EnrichedRecord], path: str) -> str:
    """Write the fixed-column analysis table; null values become empty cells."""
    ordered = sorted(records, key=lambda record: record.index)
    tmp_path = f"{path}{config_constants.PARTIAL_FILE_SUFFIX}"
    with open(tmp_path, "w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(ANALYSIS_COLUMNS), extrasaction="ignore")
        writer.writeheader()
        for record in ordered:
            writer.writerow(AnalysisRow.from_enriched(record).as_dict())
    os.replace(tmp_path, path)
    logger.debug("Wrote %d analysis rows to %s", len(ordered), path)
    return path
