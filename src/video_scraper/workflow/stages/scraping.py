"""Scraping stage: run the hashtag actor and collect its records."""

from __future__ import annotations

import logging
from typing import Optional

from ... import config, config_constants
from ...apify import ApifyClient
from ...exceptions import RemoteServiceError
from ..types import FetchOutcome

logger = logging.getLogger(__name__)


def create_client(cfg: config.Config) -> ApifyClient:
    return ApifyClient(
        token=cfg.apify_token or "",
        actor_id=cfg.apify_actor_id,
        api_base=cfg.apify_api_base,
        poll_interval=cfg.poll_interval_seconds,
        timeout=cfg.timeout,
    )


def fetch_source_records(
    cfg: config.Config, client: Optional[ApifyClient] = None
) -> FetchOutcome:
    """Submit the scrape, wait for it, and return at most ``max_results`` records.

    Raises:
        RemoteServiceError: Any non-success response, or a run that ended in a
            status other than SUCCEEDED.
    """
    owns_client = client is None
    client = client or create_client(cfg)
    try:
        logger.info("Scraping #%s (max %d results)", cfg.hashtag, cfg.max_results)
        run_id = client.submit(cfg.hashtag, cfg.max_results)
        status = client.await_completion(run_id)
        if status != config_constants.APIFY_STATUS_SUCCEEDED:
            raise RemoteServiceError(f"Apify run {run_id} ended with status {status}")
        records = client.fetch_results(run_id)
    finally:
        if owns_client:
            client.close()

    total = len(records)
    if total > cfg.max_results:
        records = records[: cfg.max_results]
    logger.info("Videos to process: %d of %d", len(records), total)
    return FetchOutcome(run_id=run_id, records=records)
