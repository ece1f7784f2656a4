"""Whisper transcription provider implementation.

Runs OpenAI Whisper locally on downloaded video files. Whisper extracts the
audio track through ffmpeg, so video containers can be passed directly.
"""

from __future__ import annotations

import importlib
import logging
import sys
import threading
import time
from types import ModuleType
from typing import Any, Optional

from .. import config
from ..exceptions import ProviderDependencyError
from ..models import Transcript

logger = logging.getLogger(__name__)


def _import_third_party_whisper() -> ModuleType:
    """Import the external whisper library from the openai-whisper package."""
    existing = sys.modules.get("whisper")
    if existing is not None and hasattr(existing, "load_model"):
        return existing

    try:
        whisper_lib = importlib.import_module("whisper")
    except ImportError as exc:
        raise ImportError(
            f"Failed to import openai-whisper library: {exc}. "
            "Make sure 'openai-whisper' is installed: pip install openai-whisper"
        ) from exc
    if not hasattr(whisper_lib, "load_model"):
        raise ImportError(
            "Imported 'whisper' module does not have 'load_model' function. "
            "Make sure 'openai-whisper' is installed: pip install openai-whisper"
        )
    return whisper_lib


class WhisperTranscriptionProvider:
    """Whisper-based transcription provider.

    ``initialize()`` loads the model for the calling thread. Any other thread
    that calls ``transcribe()`` loads a model of its own on first use, because
    a Whisper model installs decoder hooks per call and cannot decode on two
    threads at once. Half precision is always disabled so CPU-only hosts
    produce the same results as accelerated ones.
    """

    def __init__(self, cfg: config.Config):
        self.cfg = cfg
        self._model: Optional[Any] = None
        self._whisper_lib: Optional[ModuleType] = None
        self._local = threading.local()
        self._load_lock = threading.Lock()
        self._generation = 0
        self._initialized = False

    def initialize(self) -> None:
        """Load the configured Whisper model.

        Raises:
            ProviderDependencyError: openai-whisper is missing or the model
                cannot be loaded.
        """
        if self._initialized:
            return

        logger.debug(
            "Initializing Whisper transcription provider (model: %s)", self.cfg.whisper_model
        )

        try:
            self._whisper_lib = _import_third_party_whisper()
        except ImportError as exc:
            raise ProviderDependencyError(
                message=str(exc),
                dependency="openai-whisper",
                suggestion="pip install openai-whisper (ffmpeg must be on PATH)",
            ) from exc

        self._generation += 1
        self._model = self._model_for_current_thread()
        self._initialized = True

    def _load_model(self) -> Any:
        model_name = self.cfg.whisper_model
        start = time.time()
        try:
            with self._load_lock:
                model = self._whisper_lib.load_model(model_name)
        except (FileNotFoundError, RuntimeError, OSError) as exc:
            raise ProviderDependencyError(
                message=f"Failed to load Whisper model '{model_name}': {exc}",
                dependency="openai-whisper",
            ) from exc

        device = getattr(model, "device", None)
        logger.info(
            "Loaded Whisper model %s in %.1fs (device=%s, thread=%s)",
            model_name,
            time.time() - start,
            getattr(device, "type", device),
            threading.current_thread().name,
        )
        return model

    def _model_for_current_thread(self) -> Any:
        """Return this thread's model, loading one if the thread has none yet."""
        model = getattr(self._local, "model", None)
        if model is not None and getattr(self._local, "generation", None) == self._generation:
            return model
        model = self._load_model()
        self._local.model = model
        self._local.generation = self._generation
        return model

    def transcribe(self, media_path: str) -> Transcript:
        """Transcribe one media file.

        Args:
            media_path: Path to a local audio or video file

        Returns:
            Transcript with the stripped text and the detected (or configured)
            language code

        Raises:
            RuntimeError: If the provider is not initialized
            ProviderDependencyError: If this thread's model cannot be loaded
        """
        if not self._initialized or self._model is None:
            raise RuntimeError(
                "WhisperTranscriptionProvider not initialized. Call initialize() first."
            )

        model = self._model_for_current_thread()
        logger.debug(
            "Transcribing %s (model=%s, language=%s)",
            media_path,
            self.cfg.whisper_model,
            self.cfg.language or "auto",
        )
        start = time.time()
        result = model.transcribe(
            media_path,
            task="transcribe",
            language=self.cfg.language,
            fp16=False,
            verbose=False,
        )
        text = str(result.get("text") or "").strip()
        language = result.get("language") or self.cfg.language
        logger.debug(
            "Whisper finished %s in %.2fs (language=%s, text_chars=%d)",
            media_path,
            time.time() - start,
            language,
            len(text),
        )
        return Transcript(text=text, language=language)

    def cleanup(self) -> None:
        """Release the models loaded by every thread."""
        if not self._initialized:
            return
        logger.debug("Cleaning up Whisper transcription provider")
        self._model = None
        self._local = threading.local()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized
