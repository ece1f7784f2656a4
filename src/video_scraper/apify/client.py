"""Client for the Apify actor-run REST API.

Talks to three endpoints of API v2:

- ``POST /acts/{actor_id}/runs`` starts a scraping run
- ``GET /actor-runs/{run_id}`` reports the run status
- ``GET /actor-runs/{run_id}/dataset/items`` returns the scraped records

There is no retry and no overall deadline. The status loop waits as long as
the remote run takes, sleeping a fixed interval between checks.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from .. import config_constants
from ..exceptions import RemoteServiceError
from ..models import SourceRecord

logger = logging.getLogger(__name__)

MAX_ERROR_BODY_CHARS = 2000


def build_actor_payload(hashtag: str, limit: int) -> Dict[str, Any]:
    """Return the run input for the TikTok hashtag scraper actor.

    Only videos are requested; covers, slideshow images and subtitles are
    skipped.
    """
    return {
        "excludePinnedPosts": False,
        "hashtags": [hashtag],
        "resultsPerPage": limit,
        "shouldDownloadCovers": False,
        "shouldDownloadSlideshowImages": False,
        "shouldDownloadSubtitles": False,
        "shouldDownloadVideos": True,
        "videoKvStoreIdOrName": config_constants.APIFY_VIDEO_KV_STORE,
    }


class ApifyClient:
    """Submit an actor run, wait for it, and read back its dataset.

    Args:
        token: Apify API token, sent as a Bearer credential.
        actor_id: Actor to run.
        api_base: Base URL of the API (no trailing slash).
        poll_interval: Seconds between status checks.
        timeout: Optional per-request socket timeout.
        session: HTTP session; a private one is created when omitted.
        sleep: Sleep function, swapped out by tests.
    """

    def __init__(
        self,
        token: str,
        actor_id: str = config_constants.DEFAULT_APIFY_ACTOR_ID,
        api_base: str = config_constants.DEFAULT_APIFY_API_BASE,
        poll_interval: float = config_constants.DEFAULT_POLL_INTERVAL_SECONDS,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.actor_id = actor_id
        self.api_base = api_base.rstrip("/")
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._token = token
        self._session = session or requests.Session()
        self._sleep = sleep

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    def _request(self, method: str, path: str, action: str, **kwargs: Any) -> Any:
        url = f"{self.api_base}{path}"
        logger.debug("%s %s (%s)", method, url, action)
        try:
            resp = self._session.request(
                method, url, headers=self._headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise RemoteServiceError(f"Failed to {action}: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            body = (resp.text or "")[:MAX_ERROR_BODY_CHARS]
            raise RemoteServiceError(
                f"Failed to {action}", status_code=resp.status_code, body=body
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteServiceError(
                f"Failed to {action}: response is not JSON",
                status_code=resp.status_code,
                body=(resp.text or "")[:MAX_ERROR_BODY_CHARS],
            ) from exc

    @staticmethod
    def _data_field(payload: Any, key: str, action: str) -> Any:
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict) or not data.get(key):
            raise RemoteServiceError(f"Failed to {action}: response has no data.{key}")
        return data[key]

    def submit(self, hashtag: str, limit: int) -> str:
        """Start a scraping run for ``hashtag`` and return its run id."""
        payload = build_actor_payload(hashtag, limit)
        response = self._request(
            "POST", f"/acts/{self.actor_id}/runs", "start actor run", json=payload
        )
        run_id = str(self._data_field(response, "id", "start actor run"))
        logger.info("Started Apify run %s for #%s (limit=%d)", run_id, hashtag, limit)
        return run_id

    def get_status(self, run_id: str) -> str:
        response = self._request("GET", f"/actor-runs/{run_id}", "check run status")
        return str(self._data_field(response, "status", "check run status"))

    def await_completion(self, run_id: str) -> str:
        """Poll the run until it reaches a terminal status and return that status."""
        while True:
            status = self.get_status(run_id)
            if status in config_constants.APIFY_TERMINAL_STATUSES:
                logger.info("Apify run %s finished with status %s", run_id, status)
                return status
            logger.info(
                "Apify run %s status: %s (checking again in %ss)",
                run_id,
                status,
                self.poll_interval,
            )
            self._sleep(self.poll_interval)

    def fetch_results(self, run_id: str) -> List[SourceRecord]:
        """Return every dataset item of the run, indexed by position."""
        items = self._request(
            "GET", f"/actor-runs/{run_id}/dataset/items", "fetch run results"
        )
        if not isinstance(items, list):
            raise RemoteServiceError("Failed to fetch run results: expected a JSON array")
        records = [
            SourceRecord(index=i, raw=item if isinstance(item, dict) else {})
            for i, item in enumerate(items)
        ]
        logger.info("Fetched %d records from Apify run %s", len(records), run_id)
        return records

    def close(self) -> None:
        self._session.close()
