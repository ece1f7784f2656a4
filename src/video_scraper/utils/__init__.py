"""Core utilities for video_scraper.

This module provides:
- Workspace layout and per-item path helpers
- Progress reporting abstraction
"""

from .filesystem import (
    build_media_path,
    build_transcript_path,
    format_index,
    resolve_working_dir,
    setup_workspace,
    Workspace,
    write_text_atomic,
)
from .progress import (
    progress_context,
    ProgressFactory,
    ProgressReporter,
    set_progress_factory,
)

__all__ = [
    "Workspace",
    "build_media_path",
    "build_transcript_path",
    "format_index",
    "resolve_working_dir",
    "setup_workspace",
    "write_text_atomic",
    "progress_context",
    "ProgressFactory",
    "ProgressReporter",
    "set_progress_factory",
]
