#!/usr/bin/env python3
"""Tests for the Whisper transcription provider (the whisper library is mocked)."""

import threading
import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest

from conftest import create_test_config  # noqa: E402

from video_scraper.exceptions import ProviderDependencyError
from video_scraper.transcription import create_transcription_provider
from video_scraper.transcription.whisper_provider import WhisperTranscriptionProvider

IMPORT_TARGET = "video_scraper.transcription.whisper_provider._import_third_party_whisper"


@pytest.mark.unit
class TestWhisperTranscriptionProvider(unittest.TestCase):
    def setUp(self):
        self.model = MagicMock()
        self.model.transcribe.return_value = {"text": "  hola mundo \n", "language": "es"}
        self.whisper_lib = MagicMock()
        self.whisper_lib.load_model.return_value = self.model

    def test_factory_returns_whisper_provider(self):
        provider = create_transcription_provider(create_test_config())
        self.assertIsInstance(provider, WhisperTranscriptionProvider)
        self.assertFalse(provider.is_initialized)

    @patch(IMPORT_TARGET)
    def test_initialize_loads_model_once(self, mock_import):
        mock_import.return_value = self.whisper_lib
        provider = WhisperTranscriptionProvider(create_test_config(whisper_model="base"))

        provider.initialize()
        provider.initialize()

        self.whisper_lib.load_model.assert_called_once_with("base")
        self.assertTrue(provider.is_initialized)

    @patch(IMPORT_TARGET)
    def test_transcribe_uses_fixed_options(self, mock_import):
        mock_import.return_value = self.whisper_lib
        provider = WhisperTranscriptionProvider(create_test_config(language="es"))
        provider.initialize()

        transcript = provider.transcribe("/w/videos/video_0000.mp4")

        self.model.transcribe.assert_called_once_with(
            "/w/videos/video_0000.mp4",
            task="transcribe",
            language="es",
            fp16=False,
            verbose=False,
        )
        self.assertEqual(transcript.text, "hola mundo")
        self.assertEqual(transcript.language, "es")

    @patch(IMPORT_TARGET)
    def test_language_falls_back_to_configured(self, mock_import):
        self.model.transcribe.return_value = {"text": "hi"}
        mock_import.return_value = self.whisper_lib
        provider = WhisperTranscriptionProvider(create_test_config(language="en"))
        provider.initialize()

        self.assertEqual(provider.transcribe("/a.mp4").language, "en")

    @patch(IMPORT_TARGET)
    def test_auto_detect_passes_no_language(self, mock_import):
        mock_import.return_value = self.whisper_lib
        provider = WhisperTranscriptionProvider(create_test_config())
        provider.initialize()

        provider.transcribe("/a.mp4")

        _, kwargs = self.model.transcribe.call_args
        self.assertIsNone(kwargs["language"])

    @patch(IMPORT_TARGET)
    def test_initializing_thread_reuses_its_model(self, mock_import):
        mock_import.return_value = self.whisper_lib
        provider = WhisperTranscriptionProvider(create_test_config())
        provider.initialize()

        provider.transcribe("/a.mp4")
        provider.transcribe("/b.mp4")

        self.whisper_lib.load_model.assert_called_once()
        self.assertEqual(self.model.transcribe.call_count, 2)

    @patch(IMPORT_TARGET)
    def test_each_worker_thread_gets_its_own_model(self, mock_import):
        both_inside = threading.Barrier(2)
        threads_per_model = {}

        def _load_model(name):
            model = MagicMock()

            def _transcribe(path, **kwargs):
                threads_per_model.setdefault(id(model), set()).add(threading.get_ident())
                # Both calls must be inside a model at the same time
                both_inside.wait(timeout=5)
                return {"text": path, "language": "en"}

            model.transcribe.side_effect = _transcribe
            return model

        self.whisper_lib.load_model.side_effect = _load_model
        mock_import.return_value = self.whisper_lib
        provider = WhisperTranscriptionProvider(create_test_config())
        provider.initialize()

        with ThreadPoolExecutor(max_workers=2) as executor:
            transcripts = list(executor.map(provider.transcribe, ["/a.mp4", "/b.mp4"]))

        self.assertEqual([t.text for t in transcripts], ["/a.mp4", "/b.mp4"])
        # One model for the initializing thread plus one per worker
        self.assertEqual(self.whisper_lib.load_model.call_count, 3)
        self.assertEqual(len(threads_per_model), 2)
        for threads in threads_per_model.values():
            self.assertEqual(len(threads), 1)

    @patch(IMPORT_TARGET)
    def test_reinitialize_after_cleanup_loads_fresh_model(self, mock_import):
        mock_import.return_value = self.whisper_lib
        provider = WhisperTranscriptionProvider(create_test_config())
        provider.initialize()
        provider.cleanup()

        provider.initialize()
        provider.transcribe("/a.mp4")

        self.assertEqual(self.whisper_lib.load_model.call_count, 2)

    def test_transcribe_before_initialize_raises(self):
        provider = WhisperTranscriptionProvider(create_test_config())
        with self.assertRaises(RuntimeError):
            provider.transcribe("/a.mp4")

    @patch(IMPORT_TARGET)
    def test_missing_library_is_dependency_error(self, mock_import):
        mock_import.side_effect = ImportError("No module named 'whisper'")
        provider = WhisperTranscriptionProvider(create_test_config())

        with self.assertRaises(ProviderDependencyError) as ctx:
            provider.initialize()
        self.assertEqual(ctx.exception.dependency, "openai-whisper")
        self.assertFalse(provider.is_initialized)

    @patch(IMPORT_TARGET)
    def test_model_load_failure_is_dependency_error(self, mock_import):
        self.whisper_lib.load_model.side_effect = RuntimeError("checksum mismatch")
        mock_import.return_value = self.whisper_lib
        provider = WhisperTranscriptionProvider(create_test_config())

        with self.assertRaises(ProviderDependencyError):
            provider.initialize()

    @patch(IMPORT_TARGET)
    def test_cleanup_releases_model(self, mock_import):
        mock_import.return_value = self.whisper_lib
        provider = WhisperTranscriptionProvider(create_test_config())
        provider.initialize()

        provider.cleanup()

        self.assertFalse(provider.is_initialized)
        with self.assertRaises(RuntimeError):
            provider.transcribe("/a.mp4")


if __name__ == "__main__":
    unittest.main()
