"""Video Scraper - Scrape hashtag videos, transcribe them, and export a dataset.

This package runs a four-step batch:
- Scrape video records for a hashtag through an Apify actor
- Download each record's video file (concurrently by default, resumable)
- Transcribe downloaded videos locally with Whisper
- Merge everything by record index into JSON and CSV datasets

Programmatic API Example:
    >>> import video_scraper
    >>>
    >>> config = video_scraper.Config(
    ...     hashtag="bodyneutrality",
    ...     working_dir="./data",
    ...     max_results=50,
    ... )
    >>> result = video_scraper.run_pipeline(config)
    >>> print(result.summary)

CLI Usage:
    $ python -m video_scraper.cli bodyneutrality --working-dir ./data
    $ python -m video_scraper.cli --config config.yaml
"""

from __future__ import annotations

from .config import Config, load_config_file
from .workflow import PipelineResult, run_pipeline

__all__ = [
    "Config",
    "PipelineResult",
    "load_config_file",
    "run_pipeline",
    "__version__",
]
# 'cli' is available via __getattr__ for lazy loading
__version__ = "1.0.0"

_import_cache: dict[str, object] = {}


def __getattr__(name: str):
    if name in _import_cache:
        return _import_cache[name]

    if name == "cli":
        import importlib

        _cli = importlib.import_module(f"{__name__}.cli")
        _import_cache[name] = _cli
        return _cli
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
