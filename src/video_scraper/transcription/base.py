"""Transcription provider protocol."""

from __future__ import annotations

from typing import Protocol

from ..models import Transcript


class TranscriptionProvider(Protocol):
    """Speech-to-text backend used by the transcription stage.

    ``initialize()`` loads the model once per run. ``transcribe()`` may be
    called from several worker threads when parallel transcription is on.
    """

    def initialize(self) -> None: ...

    def transcribe(self, media_path: str) -> Transcript: ...

    def cleanup(self) -> None: ...
