"""Shared test helpers and fixtures for video_scraper tests.

Helpers are plain functions so that unittest-style test classes can import
them directly (``from conftest import create_test_config``).
"""

import json
import os
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import requests

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from video_scraper import config  # noqa: E402
from video_scraper.models import SourceRecord, Transcript  # noqa: E402
from video_scraper.utils import progress  # noqa: E402

TEST_HASHTAG = "bodyneutrality"
TEST_TOKEN = "apify-test-token"
TEST_RUN_ID = "run-abc123"
TEST_MEDIA_URL = "https://cdn.example.com/videos/{index}.mp4"
TEST_API_BASE = "https://api.example.com/v2"

# Environment variables read by Config; cleared so host settings never leak in
CONFIG_ENV_VARS = ("APIFY_TOKEN", "WORKING_DIR", "WORKERS", "LOG_LEVEL", "LOG_FILE")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    progress.set_progress_factory(None)


def create_test_config(**overrides):
    """Create test Config object with defaults.

    Args:
        **overrides: Fields to override from defaults (field names, not aliases)

    Returns:
        config.Config object with test defaults
    """
    defaults: Dict[str, Any] = {
        "hashtag": TEST_HASHTAG,
        "working_dir": None,
        "max_results": 10,
        "whisper_model": "tiny",
        "language": None,
        "parallel_download": False,
        "parallel_transcription": False,
        "download_workers": 2,
        "transcription_workers": 1,
        "apify_token": TEST_TOKEN,
        "apify_api_base": TEST_API_BASE,
        "poll_interval_seconds": 0.01,
        "timeout": None,
        "user_agent": "test-agent",
        "record_failures": False,
        "resume_from_checkpoint": False,
        "log_level": "INFO",
    }
    defaults.update(overrides)
    return config.Config(**defaults)


def create_apify_item(index: int, **overrides) -> Dict[str, Any]:
    """Build one dataset item shaped like the hashtag actor's output."""
    item: Dict[str, Any] = {
        "id": f"7{index:05d}",
        "text": f"Video number {index} #{TEST_HASHTAG}",
        "createTimeISO": f"2024-05-{index + 1:02d}T12:00:00.000Z",
        "diggCount": 100 + index,
        "shareCount": 10 + index,
        "playCount": 1000 + index,
        "collectCount": 5 + index,
        "commentCount": 3 + index,
        "authorMeta": {"name": f"creator{index}"},
        "mediaUrls": [TEST_MEDIA_URL.format(index=index)],
    }
    item.update(overrides)
    return item


def create_test_records(count: int, **overrides) -> List[SourceRecord]:
    return [SourceRecord(index=i, raw=create_apify_item(i, **overrides)) for i in range(count)]


class MockHTTPResponse:
    """Simple mock for HTTP responses (media streams and JSON API replies)."""

    def __init__(
        self,
        *,
        content=b"",
        url="",
        headers=None,
        chunks=None,
        status_code=200,
        json_data=None,
        text=None,
    ):
        self.content = content
        self.url = url
        self.headers = headers or {}
        self.status_code = status_code
        self._chunks = chunks if chunks is not None else [content]
        self._json_data = json_data
        if text is None:
            text = json.dumps(json_data) if json_data is not None else content.decode("utf-8")
        self.text = text
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}")
        return None

    def iter_content(self, chunk_size=1):
        for chunk in self._chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    def json(self):
        if self._json_data is None:
            return json.loads(self.text)
        return self._json_data

    def close(self):
        self.closed = True


def create_media_response(payload: bytes = b"fake-mp4-bytes", url: str = "") -> MockHTTPResponse:
    return MockHTTPResponse(
        content=payload,
        url=url,
        headers={"Content-Length": str(len(payload)), "Content-Type": "video/mp4"},
        chunks=[payload[: len(payload) // 2], payload[len(payload) // 2 :]],
    )


class FakeTranscriptionProvider:
    """In-memory transcription provider.

    ``texts`` maps a media file name to its transcript; ``failures`` maps a
    file name to the exception raised for it. Unknown files get a text derived
    from their name.
    """

    def __init__(
        self,
        texts: Optional[Dict[str, str]] = None,
        failures: Optional[Dict[str, Exception]] = None,
        language: str = "en",
    ):
        self.texts = texts or {}
        self.failures = failures or {}
        self.language = language
        self.calls: List[str] = []
        self.initialize_calls = 0
        self.cleanup_calls = 0
        self._lock = threading.Lock()

    def initialize(self) -> None:
        self.initialize_calls += 1

    def transcribe(self, media_path: str) -> Transcript:
        name = os.path.basename(media_path)
        with self._lock:
            self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]
        text = self.texts.get(name, f"transcript of {name}")
        return Transcript(text=text, language=self.language)

    def cleanup(self) -> None:
        self.cleanup_calls += 1


class FakeApifyClient:
    """Stand-in for ApifyClient that serves a fixed list of dataset items."""

    def __init__(self, items: List[Dict[str, Any]], status: str = "SUCCEEDED"):
        self.items = items
        self.status = status
        self.submitted: List[tuple] = []
        self.closed = False

    def submit(self, hashtag: str, limit: int) -> str:
        self.submitted.append((hashtag, limit))
        return TEST_RUN_ID

    def await_completion(self, run_id: str) -> str:
        return self.status

    def fetch_results(self, run_id: str) -> List[SourceRecord]:
        return [SourceRecord(index=i, raw=item) for i, item in enumerate(self.items)]

    def close(self) -> None:
        self.closed = True
