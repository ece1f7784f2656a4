"""Command-line interface helpers for video_scraper."""

from __future__ import annotations

import argparse
import logging
from contextlib import contextmanager
from typing import Any, Callable, cast, Dict, Iterator, List, Optional, Sequence, TYPE_CHECKING

from pydantic import ValidationError

from . import __version__, config, workflow
from .utils import progress

if TYPE_CHECKING:  # pragma: no cover - typing only
    import tqdm

_LOGGER = logging.getLogger(__name__)

TQDM_NCOLS = 80
TQDM_MIN_INTERVAL = 0.5
BYTES_PER_KB = 1024


class _TqdmProgress:
    """Simple adapter that exposes tqdm's update interface."""

    def __init__(self, bar: "tqdm.tqdm") -> None:
        self._bar = bar

    def update(self, advance: int) -> None:
        self._bar.update(advance)


@contextmanager
def _tqdm_progress(
    total: Optional[int], description: str, unit: str
) -> Iterator[_TqdmProgress]:
    """Create a tqdm progress context matching the shared progress API."""
    from tqdm import tqdm

    kwargs: Dict[str, Any] = {"desc": description, "total": total}
    if unit == progress.UNIT_BYTES:
        # Per-file byte bars disappear once the file is done
        kwargs.update(
            unit="B",
            unit_scale=True,
            unit_divisor=BYTES_PER_KB,
            leave=False,
            mininterval=TQDM_MIN_INTERVAL,
            ncols=TQDM_NCOLS,
        )
    else:
        kwargs.update(unit=f" {unit}", leave=True, ncols=TQDM_NCOLS)

    with tqdm(**kwargs) as bar:
        yield _TqdmProgress(bar)


def _validate_numbers(args: argparse.Namespace, errors: List[str]) -> None:
    if args.max_results is not None and args.max_results <= 0:
        errors.append(f"--max-results must be positive, got: {args.max_results}")
    if args.workers is not None and args.workers <= 0:
        errors.append(f"--workers must be positive, got: {args.workers}")
    if args.transcription_workers is not None and args.transcription_workers <= 0:
        errors.append(
            f"--transcription-workers must be positive, got: {args.transcription_workers}"
        )
    if args.poll_interval is not None and args.poll_interval <= 0:
        errors.append(f"--poll-interval must be positive, got: {args.poll_interval}")
    if args.timeout is not None and args.timeout <= 0:
        errors.append(f"--timeout must be positive, got: {args.timeout}")


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments and raise ValueError when invalid."""
    errors: List[str] = []

    hashtag = (args.hashtag or "").strip().lstrip("#")
    if not hashtag:
        errors.append("Hashtag is required")

    _validate_numbers(args, errors)

    if args.whisper_model not in config.VALID_WHISPER_MODELS:
        errors.append(
            f"--whisper-model must be one of {config.VALID_WHISPER_MODELS}, "
            f"got: {args.whisper_model}"
        )

    if errors:
        raise ValueError("Invalid input parameters:\n  " + "\n  ".join(errors))


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to parser."""
    parser.add_argument("--config", default=None, help="Path to configuration file (JSON or YAML)")
    parser.add_argument("hashtag", nargs="?", default=None, help="Hashtag to scrape (without #)")
    parser.add_argument(
        "--working-dir",
        dest="working_dir",
        default=None,
        help="Existing directory for videos, transcripts and datasets (default: $WORKING_DIR)",
    )
    parser.add_argument(
        "--max-results",
        dest="max_results",
        type=int,
        default=config.DEFAULT_MAX_RESULTS,
        help="Maximum number of videos to scrape",
    )
    parser.add_argument(
        "--from-checkpoint",
        dest="from_checkpoint",
        action="store_true",
        help="Skip scraping and downloads; transcribe from video_dataset.json",
    )
    parser.add_argument(
        "--record-failures",
        dest="record_failures",
        action="store_true",
        help="Write item failures to failures.jsonl in the working directory",
    )
    parser.add_argument("--version", action="store_true", help="Show program version and exit")
    parser.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Path to log file (logs will be written to both console and file)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=config.DEFAULT_LOG_LEVEL,
        type=str.upper,
        help="Logging level (e.g., DEBUG, INFO)",
    )


def _add_apify_arguments(parser: argparse.ArgumentParser) -> None:
    """Add scraping service arguments to parser."""
    group = parser.add_argument_group("Apify")
    group.add_argument(
        "--actor-id",
        dest="actor_id",
        default=config.DEFAULT_APIFY_ACTOR_ID,
        help="Apify actor that scrapes the hashtag",
    )
    group.add_argument(
        "--apify-api-base",
        dest="apify_api_base",
        default=config.DEFAULT_APIFY_API_BASE,
        help="Apify API base URL",
    )
    group.add_argument(
        "--apify-token",
        dest="apify_token",
        default=None,
        help="Apify API token (default: $APIFY_TOKEN)",
    )
    group.add_argument(
        "--poll-interval",
        dest="poll_interval",
        type=float,
        default=config.DEFAULT_POLL_INTERVAL_SECONDS,
        help="Seconds between run status checks",
    )


def _add_download_arguments(parser: argparse.ArgumentParser) -> None:
    """Add media download arguments to parser."""
    group = parser.add_argument_group("Downloads")
    group.add_argument(
        "--parallel-download",
        dest="parallel_download",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Download videos concurrently",
    )
    group.add_argument(
        "--workers",
        type=int,
        default=config.DEFAULT_DOWNLOAD_WORKERS,
        help="Number of concurrent download workers",
    )
    group.add_argument(
        "--user-agent", dest="user_agent", default=config.DEFAULT_USER_AGENT, help="User-Agent"
    )
    group.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Per-request socket timeout in seconds (default: none)",
    )


def _add_transcription_arguments(parser: argparse.ArgumentParser) -> None:
    """Add transcription-related arguments to parser."""
    group = parser.add_argument_group("Transcription")
    group.add_argument(
        "--whisper-model",
        dest="whisper_model",
        default=config.DEFAULT_WHISPER_MODEL,
        help="Whisper model to use (e.g., tiny, base, small)",
    )
    group.add_argument(
        "--language",
        default=None,
        help="Transcription language code (default: auto-detect)",
    )
    group.add_argument(
        "--parallel-transcription",
        dest="parallel_transcription",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Transcribe in a worker pool (memory intensive)",
    )
    group.add_argument(
        "--transcription-workers",
        dest="transcription_workers",
        type=int,
        default=config.DEFAULT_TRANSCRIPTION_WORKERS,
        help="Worker slots for parallel transcription",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scrape hashtag videos through Apify, download and transcribe them."
    )
    _add_common_arguments(parser)
    _add_apify_arguments(parser)
    _add_download_arguments(parser)
    _add_transcription_arguments(parser)
    return parser


def _load_and_merge_config(
    parser: argparse.ArgumentParser,
    config_path: str,
    argv: Optional[Sequence[str]],
    cli_hashtag: Optional[str],
) -> argparse.Namespace:
    """Load a configuration file as parser defaults, then re-parse so CLI flags win.

    Raises:
        ValueError: If the file is invalid, has unknown keys, or no hashtag is given
    """
    config_data = config.load_config_file(config_path)
    # Parser dests are the Config aliases; field names are accepted too
    field_aliases = {
        name: field.alias or name for name, field in config.Config.model_fields.items()
    }
    accepted_keys = set(field_aliases) | set(field_aliases.values())
    unknown_keys = [key for key in config_data.keys() if key not in accepted_keys]
    if unknown_keys:
        raise ValueError("Unknown config option(s): " + ", ".join(sorted(unknown_keys)))
    config_data = {field_aliases.get(key, key): value for key, value in config_data.items()}

    to_validate = dict(config_data)
    if not to_validate.get("hashtag") and cli_hashtag:
        to_validate["hashtag"] = cli_hashtag
    if not to_validate.get("hashtag"):
        raise ValueError("Hashtag is required (provide in config as 'hashtag' or via CLI)")

    try:
        config_model = config.Config.model_validate(to_validate)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    defaults_updates: Dict[str, Any] = config_model.model_dump(exclude_none=True, by_alias=True)
    if config_data.get("apify_token"):
        defaults_updates["apify_token"] = config_data["apify_token"]

    parser.set_defaults(**defaults_updates)
    return parser.parse_args(argv)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments, optionally merging configuration file defaults."""
    parser = _build_parser()
    initial_args, _ = parser.parse_known_args(argv)

    if initial_args.version:
        print(f"video_scraper {__version__}")
        raise SystemExit(0)

    if initial_args.config:
        args = _load_and_merge_config(parser, initial_args.config, argv, initial_args.hashtag)
    else:
        args = parser.parse_args(argv)

    validate_args(args)
    return args


def _build_config(args: argparse.Namespace) -> config.Config:
    """Materialize a Config object from already-validated CLI arguments."""
    payload: Dict[str, Any] = {
        "hashtag": args.hashtag,
        "working_dir": args.working_dir,
        "max_results": args.max_results,
        "whisper_model": args.whisper_model,
        "language": args.language,
        "parallel_download": args.parallel_download,
        "parallel_transcription": args.parallel_transcription,
        "workers": args.workers,
        "transcription_workers": args.transcription_workers,
        "apify_token": args.apify_token,
        "actor_id": args.actor_id,
        "apify_api_base": args.apify_api_base,
        "poll_interval": args.poll_interval,
        "timeout": args.timeout,
        "user_agent": args.user_agent,
        "record_failures": args.record_failures,
        "from_checkpoint": args.from_checkpoint,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }
    return cast(config.Config, config.Config.model_validate(payload))


def _log_configuration(cfg: config.Config, logger: logging.Logger) -> None:
    """Log configuration values in a structured format (the API token is redacted)."""
    logger.info("=" * 80)
    logger.info("Configuration")
    logger.info("=" * 80)

    logger.info("Core Settings:")
    logger.info(f"  Hashtag: #{cfg.hashtag}")
    logger.info(f"  Working Directory: {cfg.working_dir}")
    logger.info(f"  Max Results: {cfg.max_results}")
    logger.info(f"  Resume From Checkpoint: {cfg.resume_from_checkpoint}")
    logger.info(f"  Record Failures: {cfg.record_failures}")
    logger.info(f"  Log Level: {cfg.log_level}")
    logger.info(f"  Log File: {cfg.log_file or 'console only'}")

    logger.info("Apify Settings:")
    logger.info(f"  Actor: {cfg.apify_actor_id}")
    logger.info(f"  API Base: {cfg.apify_api_base}")
    logger.info(f"  Token: {'set' if cfg.apify_token else 'missing'}")
    logger.info(f"  Poll Interval: {cfg.poll_interval_seconds}s")

    logger.info("Download Settings:")
    logger.info(f"  Parallel: {cfg.parallel_download} ({cfg.download_workers} workers)")
    logger.info(f"  Timeout: {f'{cfg.timeout}s' if cfg.timeout else 'none'}")

    logger.info("Transcription Settings:")
    logger.info(f"  Whisper Model: {cfg.whisper_model}")
    logger.info(f"  Language: {cfg.language or 'auto-detect'}")
    logger.info(
        f"  Parallel: {cfg.parallel_transcription} ({cfg.transcription_workers} workers)"
    )
    logger.info("=" * 80)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    apply_log_level_fn: Optional[Callable[[str, Optional[str]], None]] = None,
    run_pipeline_fn: Optional[Callable[[config.Config], workflow.PipelineResult]] = None,
    logger: Optional[logging.Logger] = None,
) -> int:
    """Entry point for the CLI; returns an exit status code."""
    progress.set_progress_factory(_tqdm_progress)
    log = logger or _LOGGER
    if apply_log_level_fn is None:
        apply_log_level_fn = workflow.apply_log_level
    if run_pipeline_fn is None:
        run_pipeline_fn = workflow.run_pipeline

    try:
        args = parse_args(argv)
    except ValueError as exc:
        log.error(f"Error: {exc}")
        return 1

    try:
        cfg = _build_config(args)
    except ValidationError as exc:
        log.error(f"Invalid configuration: {exc}")
        return 1

    try:
        apply_log_level_fn(cfg.log_level, cfg.log_file)
    except (OSError, ValueError) as exc:
        log.error(f"Failed to configure logging: {exc}")
        return 1

    log.info(f"Starting video scrape for #{cfg.hashtag}")
    _log_configuration(cfg, log)

    try:
        result = run_pipeline_fn(cfg)
    except Exception as exc:
        log.exception(f"Unexpected failure: {exc}")
        return 1

    if not result.success:
        log.error(result.summary)
        return 1
    log.info(result.summary)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    raise SystemExit(main())
