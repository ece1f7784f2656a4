"""Apify scraping service integration."""

from .client import ApifyClient, build_actor_payload

__all__ = ["ApifyClient", "build_actor_payload"]
