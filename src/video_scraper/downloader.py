"""HTTP session management and download helpers for video_scraper."""

from __future__ import annotations

import atexit
import logging
import os
import threading
from typing import cast, List, Optional

import requests
from requests.adapters import HTTPAdapter
from requests.utils import requote_uri

from . import config_constants
from .utils import progress
from .utils.progress import ProgressReporter

logger = logging.getLogger(__name__)

_urllib3_logs_suppressed = False


def _suppress_urllib3_debug_logs() -> None:
    """Keep urllib3 connection chatter out of DEBUG runs."""
    global _urllib3_logs_suppressed
    if _urllib3_logs_suppressed:
        return

    root_logger = logging.getLogger()
    root_level = root_logger.level if root_logger.level else logging.INFO
    if root_level <= logging.DEBUG:
        for logger_name in ("urllib3", "urllib3.connectionpool", "urllib3.connection"):
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    _urllib3_logs_suppressed = True


BYTES_PER_MB = 1024 * 1024
DOWNLOAD_CHUNK_SIZE = 1024 * 256

_THREAD_LOCAL = threading.local()
_SESSION_REGISTRY: List[requests.Session] = []
_SESSION_REGISTRY_LOCK = threading.Lock()


def normalize_url(url: str) -> str:
    """Normalize URLs while preserving already-encoded segments."""
    normalized = requote_uri(url)
    if normalized != url:
        logger.debug("Normalized URL %s -> %s", url, normalized)
    return cast(str, normalized)


def _configure_http_session(session: requests.Session) -> None:
    """Attach adapters without retries; a failed item stays failed."""
    adapter = HTTPAdapter(max_retries=0)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    logger.debug("Configured HTTP session %s", hex(id(session)))


def get_thread_request_session() -> requests.Session:
    """Return the HTTP session owned by the calling thread, creating it on first use."""
    _suppress_urllib3_debug_logs()

    session = getattr(_THREAD_LOCAL, "session", None)
    if session is None:
        session = requests.Session()
        _configure_http_session(session)
        setattr(_THREAD_LOCAL, "session", session)
        with _SESSION_REGISTRY_LOCK:
            _SESSION_REGISTRY.append(session)
        logger.debug("Created new thread-local HTTP session %s", hex(id(session)))
    return session


def _close_all_sessions() -> None:
    with _SESSION_REGISTRY_LOCK:
        for session in _SESSION_REGISTRY:
            try:
                session.close()
            except Exception:  # pragma: no cover  # nosec B110
                pass
        _SESSION_REGISTRY.clear()


atexit.register(_close_all_sessions)


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.debug("Could not remove partial file %s: %s", path, exc)


def http_download_to_file(
    url: str, user_agent: str, timeout: Optional[int], out_path: str
) -> int:
    """Stream ``url`` into ``out_path`` and return the number of bytes written.

    The body is written to ``<out_path>.part`` and renamed into place once the
    stream completes, so ``out_path`` only ever holds a complete file.

    Raises:
        requests.RequestException: Connection failure or non-2xx status.
        OSError: The file could not be written.
    """
    normalized_url = normalize_url(url)
    session = get_thread_request_session()
    tmp_path = f"{out_path}{config_constants.PARTIAL_FILE_SUFFIX}"
    logger.debug(
        "Opening HTTP connection to %s (timeout=%s) via session %s",
        normalized_url,
        timeout,
        hex(id(session)),
    )
    resp = session.get(
        normalized_url, headers={"User-Agent": user_agent}, timeout=timeout, stream=True
    )
    try:
        resp.raise_for_status()
        content_length = resp.headers.get("Content-Length")
        try:
            total_size = int(content_length) if content_length else None
        except (TypeError, ValueError):
            total_size = None

        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        filename = os.path.basename(out_path)
        logger.debug(
            "Streaming download from %s to %s (content-length=%s, chunk-size=%s)",
            normalized_url,
            out_path,
            content_length,
            DOWNLOAD_CHUNK_SIZE,
        )

        total_bytes = 0
        try:
            with (
                open(tmp_path, "wb") as f,
                progress.progress_context(
                    total_size, f"Downloading {filename}", progress.UNIT_BYTES
                ) as reporter,
            ):
                for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if not chunk:
                        continue
                    f.write(chunk)
                    total_bytes += len(chunk)
                    cast(ProgressReporter, reporter).update(len(chunk))
            os.replace(tmp_path, out_path)
        except BaseException:
            _remove_quietly(tmp_path)
            raise
        logger.debug(
            "Finished downloading %s (%.2f MB written)", url, total_bytes / BYTES_PER_MB
        )
        return total_bytes
    finally:
        resp.close()


__all__ = [
    "BYTES_PER_MB",
    "DOWNLOAD_CHUNK_SIZE",
    "get_thread_request_session",
    "http_download_to_file",
    "normalize_url",
]
