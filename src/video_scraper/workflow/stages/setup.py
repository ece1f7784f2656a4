"""Setup stage: preconditions, workspace and transcription model.

Every check here runs before any network request so a misconfigured run
leaves nothing behind.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Tuple

from ... import config
from ...exceptions import PreconditionError
from ...transcription import create_transcription_provider, TranscriptionProvider
from ...utils import filesystem
from ..metrics import Metrics

logger = logging.getLogger(__name__)


def validate_preconditions(cfg: config.Config) -> str:
    """Check the working directory and credential; return the resolved directory.

    Raises:
        PreconditionError: The working directory is unset or missing, or the
            API token is absent on a run that has to contact the service.
    """
    if not cfg.working_dir:
        raise PreconditionError(
            "No working directory configured",
            suggestion="Pass --working-dir or set WORKING_DIR",
        )
    try:
        working_dir = filesystem.resolve_working_dir(cfg.working_dir)
    except ValueError as exc:
        raise PreconditionError(str(exc), suggestion="Create the directory first") from exc

    if not cfg.resume_from_checkpoint and not cfg.apify_token:
        raise PreconditionError(
            "APIFY_TOKEN is not set",
            suggestion="Export APIFY_TOKEN or add it to a .env file",
        )
    return working_dir


def setup_workspace(working_dir: str) -> filesystem.Workspace:
    """Create the videos/ and transcriptions/ directories."""
    try:
        workspace = filesystem.setup_workspace(working_dir)
    except (OSError, ValueError) as exc:
        raise PreconditionError(f"Cannot prepare workspace in {working_dir}: {exc}") from exc
    logger.info("Working directory: %s", workspace.root)
    return workspace


def load_transcription_provider(
    cfg: config.Config, pipeline_metrics: Optional[Metrics] = None
) -> TranscriptionProvider:
    """Create the provider and load its model once for the whole run.

    Raises:
        ProviderDependencyError: The backend is missing or the model cannot load.
    """
    provider = create_transcription_provider(cfg)
    start = time.time()
    provider.initialize()
    if pipeline_metrics is not None:
        pipeline_metrics.whisper_model_loading_time = time.time() - start
    return provider


def initialize_run(
    cfg: config.Config, pipeline_metrics: Optional[Metrics] = None
) -> Tuple[filesystem.Workspace, TranscriptionProvider]:
    """Run all setup steps in order and return the workspace and loaded provider."""
    working_dir = validate_preconditions(cfg)
    workspace = setup_workspace(working_dir)
    provider = load_transcription_provider(cfg, pipeline_metrics)
    return workspace, provider
