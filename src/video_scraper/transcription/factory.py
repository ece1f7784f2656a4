"""Factory for creating transcription providers."""

from __future__ import annotations

from .. import config
from .base import TranscriptionProvider


def create_transcription_provider(cfg: config.Config) -> TranscriptionProvider:
    """Create the transcription provider for ``cfg``.

    Whisper is the only backend; the model itself is not loaded until
    ``initialize()`` is called.

    Example:
        >>> provider = create_transcription_provider(cfg)
        >>> provider.initialize()
        >>> provider.transcribe("videos/video_0000.mp4")
    """
    from .whisper_provider import WhisperTranscriptionProvider

    return WhisperTranscriptionProvider(cfg)
