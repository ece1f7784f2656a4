"""Workflow orchestration and pipeline execution.

This package provides:
- Pipeline orchestration (orchestration.py)
- Workflow stages (setup, scraping, download, transcription, export)
- Metrics collection and run summaries
"""

from __future__ import annotations

from . import metrics
from .orchestration import apply_log_level, run_pipeline
from .types import DownloadOutcome, ExportPaths, FetchOutcome, PipelineResult

__all__ = [
    "DownloadOutcome",
    "ExportPaths",
    "FetchOutcome",
    "PipelineResult",
    "apply_log_level",
    "metrics",
    "run_pipeline",
]
