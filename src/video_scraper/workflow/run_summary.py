"""Run summary generation (run.json)."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .. import config, config_constants
from .metrics import Metrics

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def create_run_summary(
    cfg: config.Config,
    pipeline_metrics: Optional[Metrics],
    artifacts: Dict[str, Optional[str]],
    run_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Create the run summary dictionary.

    Args:
        cfg: Configuration of the run (the API token is never included)
        pipeline_metrics: Metrics object (optional)
        artifacts: Artifact name to path mapping
        run_id: Optional run identifier (defaults to a UTC timestamp)
    """
    created_at = _utc_now()
    summary: Dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "run_id": run_id or created_at,
        "created_at": created_at,
        "config": {
            "hashtag": cfg.hashtag,
            "max_results": cfg.max_results,
            "whisper_model": cfg.whisper_model,
            "language": cfg.language,
            "parallel_download": cfg.parallel_download,
            "parallel_transcription": cfg.parallel_transcription,
            "apify_actor_id": cfg.apify_actor_id,
            "resume_from_checkpoint": cfg.resume_from_checkpoint,
        },
        "artifacts": dict(artifacts),
    }
    if pipeline_metrics is not None:
        summary["metrics"] = pipeline_metrics.finish()
    return summary


def save_run_summary(
    run_summary: Dict[str, Any],
    output_dir: str,
    filename: str = config_constants.RUN_SUMMARY_FILENAME,
) -> str:
    """Save run summary to a JSON file and return its path."""
    output_path = Path(output_dir) / filename
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(run_summary, indent=2, default=str), encoding="utf-8")
    logger.info(f"Run summary saved to: {output_path}")
    return str(output_path)
