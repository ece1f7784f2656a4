"""Pluggable progress reporting.

Stages report per-video progress ("video" units) and the HTTP layer reports
streamed bytes ("B" units). The CLI installs a tqdm-backed factory; library
callers get a no-op reporter unless they register their own.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Optional, Protocol

UNIT_BYTES = "B"
UNIT_VIDEOS = "video"


class ProgressReporter(Protocol):
    """Minimal interface for progress callbacks."""

    def update(self, advance: int) -> None: ...


ProgressFactory = Callable[[Optional[int], str, str], ContextManager[ProgressReporter]]


class _NoopProgress:
    def update(self, advance: int) -> None:  # pragma: no cover - trivial
        return None


@contextmanager
def _noop_progress(
    total: Optional[int], description: str, unit: str
) -> Iterator[ProgressReporter]:
    yield _NoopProgress()


_progress_factory: Optional[ProgressFactory] = None


def set_progress_factory(factory: Optional[ProgressFactory]) -> None:
    """Register a global factory for progress reporters (None restores the no-op)."""

    global _progress_factory
    _progress_factory = factory or _noop_progress


@contextmanager
def progress_context(
    total: Optional[int], description: str, unit: str = UNIT_VIDEOS
) -> Iterator[ProgressReporter]:
    """Yield the active progress reporter for ``total`` units of work."""

    factory = _progress_factory or _noop_progress
    with factory(total, description, unit) as reporter:
        yield reporter


__all__ = [
    "ProgressReporter",
    "ProgressFactory",
    "UNIT_BYTES",
    "UNIT_VIDEOS",
    "progress_context",
    "set_progress_factory",
]
