"""Simple in-memory metrics collector for pipeline runs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class Metrics:
    """In-memory metrics collector for one pipeline run.

    Only the driver thread records into it; workers return results and the
    stages count them afterwards.
    """

    run_duration_seconds: float = 0.0
    records_fetched: int = 0

    downloads_succeeded: int = 0
    downloads_skipped: int = 0
    downloads_failed: int = 0
    bytes_downloaded_total: int = 0

    transcriptions_succeeded: int = 0
    transcriptions_failed: int = 0
    files_missing: int = 0

    rows_exported: int = 0

    time_fetching: float = 0.0
    time_downloading: float = 0.0
    time_transcribing: float = 0.0
    time_exporting: float = 0.0
    whisper_model_loading_time: float = 0.0

    stages_completed: List[str] = field(default_factory=list)

    _start_time: float = field(default_factory=time.time, init=False, repr=False)

    def record_stage(self, stage: str, duration: float) -> None:
        """Record wall time spent in a stage.

        Args:
            stage: "fetching", "downloading", "transcribing" or "exporting"
            duration: Duration in seconds
        """
        if stage == "fetching":
            self.time_fetching += duration
        elif stage == "downloading":
            self.time_downloading += duration
        elif stage == "transcribing":
            self.time_transcribing += duration
        elif stage == "exporting":
            self.time_exporting += duration
        else:
            logger.debug("Ignoring timing for unknown stage %s", stage)
            return
        self.stages_completed.append(stage)

    def finish(self) -> Dict[str, Any]:
        """Calculate final metrics and return them as a dict."""
        self.run_duration_seconds = time.time() - self._start_time
        return {
            "run_duration_seconds": round(self.run_duration_seconds, 2),
            "records_fetched": self.records_fetched,
            "downloads_succeeded": self.downloads_succeeded,
            "downloads_skipped": self.downloads_skipped,
            "downloads_failed": self.downloads_failed,
            "bytes_downloaded_total": self.bytes_downloaded_total,
            "transcriptions_succeeded": self.transcriptions_succeeded,
            "transcriptions_failed": self.transcriptions_failed,
            "files_missing": self.files_missing,
            "rows_exported": self.rows_exported,
            "time_fetching_seconds": round(self.time_fetching, 2),
            "time_downloading_seconds": round(self.time_downloading, 2),
            "time_transcribing_seconds": round(self.time_transcribing, 2),
            "time_exporting_seconds": round(self.time_exporting, 2),
            "whisper_model_loading_time_seconds": round(self.whisper_model_loading_time, 2),
            "stages_completed": list(self.stages_completed),
        }

    def log_metrics(self) -> None:
        """Log every metric on its own line at DEBUG level."""
        summary_lines = ["Pipeline finished (detailed metrics):"]
        for key, value in self.finish().items():
            readable_key = key.replace("_", " ").title()
            summary_lines.append(f"  - {readable_key}: {value}")
        logger.debug("\n".join(summary_lines))
