"""Workspace layout and per-item path helpers."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import NamedTuple

from .. import config_constants

logger = logging.getLogger(__name__)


class Workspace(NamedTuple):
    """Absolute paths of every artifact location inside a working directory."""

    root: str
    videos_dir: str
    transcripts_dir: str

    def artifact(self, filename: str) -> str:
        return os.path.join(self.root, filename)


def format_index(index: int) -> str:
    """Zero-pad an item index so files sort in fetch order."""
    if index < 0:
        raise ValueError(f"Item index must be non-negative, got {index}")
    return f"{index:0{config_constants.INDEX_PAD_WIDTH}d}"


def build_media_path(index: int, videos_dir: str) -> str:
    """Return the deterministic media path for item ``index``."""
    name = (
        f"{config_constants.MEDIA_FILENAME_PREFIX}{format_index(index)}"
        f"{config_constants.MEDIA_EXTENSION}"
    )
    return os.path.join(videos_dir, name)


def build_transcript_path(index: int, transcripts_dir: str) -> str:
    """Return the deterministic transcript path for item ``index``."""
    name = (
        f"{config_constants.TRANSCRIPT_FILENAME_PREFIX}{format_index(index)}"
        f"{config_constants.TRANSCRIPT_EXTENSION}"
    )
    return os.path.join(transcripts_dir, name)


def resolve_working_dir(path: str) -> str:
    """Return the absolute working directory, raising ValueError if it is unusable."""
    if not path or not path.strip():
        raise ValueError("Working directory path cannot be empty")
    try:
        resolved = Path(path).expanduser().resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid working directory path: {path} ({exc})") from exc
    if not resolved.is_dir():
        raise ValueError(f"Working directory does not exist: {resolved}")
    return str(resolved)


def setup_workspace(working_dir: str) -> Workspace:
    """Create the videos/ and transcriptions/ subdirectories of ``working_dir``."""
    root = resolve_working_dir(working_dir)
    workspace = Workspace(
        root=root,
        videos_dir=os.path.join(root, config_constants.VIDEOS_DIRNAME),
        transcripts_dir=os.path.join(root, config_constants.TRANSCRIPTS_DIRNAME),
    )
    os.makedirs(workspace.videos_dir, exist_ok=True)
    os.makedirs(workspace.transcripts_dir, exist_ok=True)
    logger.debug(
        "Workspace ready at %s (videos=%s, transcripts=%s)",
        workspace.root,
        workspace.videos_dir,
        workspace.transcripts_dir,
    )
    return workspace


def write_text_atomic(path: str, text: str) -> None:
    """Write text next to ``path`` and rename it into place."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp_path = f"{path}{config_constants.PARTIAL_FILE_SUFFIX}"
    with open(tmp_path, "w", encoding="utf-8") as handle:
        handle.write(text)
    os.replace(tmp_path, path)


__all__ = [
    "Workspace",
    "build_media_path",
    "build_transcript_path",
    "format_index",
    "resolve_working_dir",
    "setup_workspace",
    "write_text_atomic",
]
