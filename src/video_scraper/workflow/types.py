"""Type definitions for the workflow pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional

from ..models import DownloadResult, EnrichedRecord, SourceRecord, TranscriptionResult


class ExportPaths(NamedTuple):
    """Artifacts written by the export stage."""

    merged_dataset: str
    analysis_dataset: str


class DownloadOutcome(NamedTuple):
    """Download stage output: one result per record plus the checkpoint path."""

    results: List[DownloadResult]
    enriched: List[EnrichedRecord]
    checkpoint_path: Optional[str]


class FetchOutcome(NamedTuple):
    """Scraping stage output."""

    run_id: Optional[str]
    records: List[SourceRecord]


@dataclass
class PipelineResult:
    """Outcome of one pipeline run.

    ``success`` is False only for fatal errors (precondition, remote service,
    transcription backend). Item-level failures are counted, never fatal.
    """

    success: bool
    error: Optional[str] = None
    error_kind: Optional[str] = None
    records_total: int = 0
    downloads_succeeded: int = 0
    downloads_failed: int = 0
    transcriptions_succeeded: int = 0
    transcriptions_failed: int = 0
    outputs: Dict[str, str] = field(default_factory=dict)
    transcription_results: List[TranscriptionResult] = field(default_factory=list, repr=False)

    @property
    def summary(self) -> str:
        if not self.success:
            return f"Pipeline failed ({self.error_kind}): {self.error}"
        return (
            f"Videos processed: {self.records_total}; "
            f"downloaded: {self.downloads_succeeded} (failed {self.downloads_failed}); "
            f"transcribed: {self.transcriptions_succeeded} "
            f"(failed {self.transcriptions_failed})"
        )
