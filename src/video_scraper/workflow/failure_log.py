"""JSONL log of item-level failures.

Item failures never stop a run and leave only null fields in the exported
dataset. When ``record_failures`` is enabled, each one is also appended here
so the reason survives the run.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..models import DownloadResult, TranscriptionResult

logger = logging.getLogger(__name__)


class FailureLog:
    """Append-only JSONL writer, used as a context manager."""

    def __init__(self, jsonl_path: str, run_id: Optional[str] = None):
        self.jsonl_path = Path(jsonl_path)
        self.jsonl_path.parent.mkdir(parents=True, exist_ok=True)
        self.run_id = run_id
        self.count = 0
        self._file_handle = None

    def __enter__(self):
        self._file_handle = open(self.jsonl_path, "a", encoding="utf-8")
        return self

    def __exit__(self, _exc_type, _exc_val, _exc_tb):
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None

    def _write_line(self, event: Dict[str, Any]) -> None:
        if not self._file_handle:
            raise RuntimeError("Failure log not opened (use as context manager)")
        self._file_handle.write(json.dumps(event, ensure_ascii=False) + "\n")
        self._file_handle.flush()
        self.count += 1

    def _event(self, stage: str, index: int, error_kind: str, error: Optional[str]):
        return {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": self.run_id,
            "stage": stage,
            "index": index,
            "error_kind": error_kind,
            "error": error,
        }

    def record_downloads(self, results: Iterable[DownloadResult]) -> None:
        for result in results:
            if not result.success:
                self._write_line(
                    self._event("download", result.index, "download_error", result.error)
                )

    def record_transcriptions(self, results: Iterable[TranscriptionResult]) -> None:
        for result in results:
            if not result.success:
                self._write_line(
                    self._event(
                        "transcription",
                        result.index,
                        result.error_kind or "transcription_error",
                        result.error,
                    )
                )
