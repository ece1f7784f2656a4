"""Workflow stage modules for pipeline orchestration."""

from . import download, export, scraping, setup, transcription

__all__ = ["setup", "scraping", "download", "transcription", "export"]
