"""Speech-to-text providers."""

from .base import TranscriptionProvider
from .factory import create_transcription_provider

__all__ = ["TranscriptionProvider", "create_transcription_provider"]
