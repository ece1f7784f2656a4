from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import config_constants


def _is_test_environment() -> bool:
    """Check if we're running in a test environment."""
    import sys

    if "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ:
        return True
    if "unittest" in sys.modules:
        return True
    if os.environ.get("TESTING", "").lower() in ("1", "true", "yes"):
        return True
    return False


# Tests build Config objects explicitly and never rely on .env files
if not _is_test_environment():
    try:
        load_dotenv(override=False)
    except (PermissionError, OSError):
        pass

DEFAULT_LOG_LEVEL = config_constants.DEFAULT_LOG_LEVEL
DEFAULT_USER_AGENT = config_constants.DEFAULT_USER_AGENT
DEFAULT_MAX_RESULTS = config_constants.DEFAULT_MAX_RESULTS
DEFAULT_DOWNLOAD_WORKERS = config_constants.DEFAULT_DOWNLOAD_WORKERS
DEFAULT_TRANSCRIPTION_WORKERS = config_constants.DEFAULT_TRANSCRIPTION_WORKERS
DEFAULT_APIFY_API_BASE = config_constants.DEFAULT_APIFY_API_BASE
DEFAULT_APIFY_ACTOR_ID = config_constants.DEFAULT_APIFY_ACTOR_ID
DEFAULT_POLL_INTERVAL_SECONDS = config_constants.DEFAULT_POLL_INTERVAL_SECONDS
DEFAULT_WHISPER_MODEL = config_constants.DEFAULT_WHISPER_MODEL
MIN_TIMEOUT_SECONDS = config_constants.MIN_TIMEOUT_SECONDS
VALID_WHISPER_MODELS = config_constants.VALID_WHISPER_MODELS
VALID_LOG_LEVELS = config_constants.VALID_LOG_LEVELS


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


class Config(BaseModel):
    """Configuration model for the hashtag video pipeline.

    The model is immutable (frozen) after creation and is passed explicitly to
    every stage. Configuration can be created programmatically or loaded from
    JSON/YAML files using `load_config_file()`.

    Attributes:
        hashtag: Hashtag to scrape (a leading ``#`` is stripped).
        working_dir: Directory that receives every artifact. Must already exist.
        max_results: Upper bound on scraped records.
        whisper_model: Whisper model name (e.g., "tiny", "base", "small").
        language: Optional transcription language. None lets Whisper detect it.
        parallel_download: Download media concurrently (default: True).
        parallel_transcription: Transcribe concurrently (default: False).
        download_workers: Worker slots for concurrent downloads.
        transcription_workers: Worker slots for concurrent transcription.
        apify_token: Apify API token, read from APIFY_TOKEN when not provided.
        apify_actor_id: Apify actor that scrapes the hashtag.
        apify_api_base: Base URL of the Apify REST API.
        poll_interval_seconds: Fixed delay between actor run status checks.
        timeout: Optional per-request socket timeout in seconds.
        user_agent: HTTP User-Agent header for media downloads.
        record_failures: Write every item failure to failures.jsonl.
        resume_from_checkpoint: Skip fetch and download; transcribe from the
            download checkpoint in working_dir.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path for file output.
    """

    hashtag: str = Field(alias="hashtag")
    working_dir: Optional[str] = Field(default=None, alias="working_dir", validate_default=True)
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, alias="max_results")
    whisper_model: str = Field(default=DEFAULT_WHISPER_MODEL, alias="whisper_model")
    language: Optional[str] = Field(
        default=None,
        alias="language",
        description="Transcription language code; None lets Whisper auto-detect",
    )
    parallel_download: bool = Field(default=True, alias="parallel_download")
    parallel_transcription: bool = Field(
        default=False,
        alias="parallel_transcription",
        description="Run Whisper in a worker pool (memory heavy)",
    )
    download_workers: int = Field(default=DEFAULT_DOWNLOAD_WORKERS, alias="workers")
    transcription_workers: int = Field(
        default=DEFAULT_TRANSCRIPTION_WORKERS, alias="transcription_workers"
    )
    apify_token: Optional[str] = Field(
        default=None, alias="apify_token", repr=False, exclude=True
    )
    apify_actor_id: str = Field(default=DEFAULT_APIFY_ACTOR_ID, alias="actor_id")
    apify_api_base: str = Field(default=DEFAULT_APIFY_API_BASE, alias="apify_api_base")
    poll_interval_seconds: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS, alias="poll_interval"
    )
    timeout: Optional[int] = Field(
        default=None,
        alias="timeout",
        description="Per-request socket timeout in seconds; None waits indefinitely",
    )
    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="user_agent")
    record_failures: bool = Field(
        default=False,
        alias="record_failures",
        description="Write item failures to failures.jsonl in the working directory",
    )
    resume_from_checkpoint: bool = Field(default=False, alias="from_checkpoint")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, alias="log_level")
    log_file: Optional[str] = Field(default=None, alias="log_file", validate_default=True)

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _preprocess_config_data(cls, data: Any) -> Any:
        """Fill values from environment variables.

        APIFY_TOKEN and WORKERS only apply when the field is absent.
        LOG_LEVEL takes precedence over the config value.
        """
        if not isinstance(data, dict):
            return data

        if not data.get("apify_token"):
            env_token = _env_str(config_constants.APIFY_TOKEN_ENV_VAR)
            if env_token:
                data["apify_token"] = env_token

        if data.get("workers") is None and data.get("download_workers") is None:
            env_workers = os.getenv("WORKERS")
            if env_workers:
                try:
                    workers_value = int(env_workers)
                    if workers_value > 0:
                        data["workers"] = workers_value
                except (ValueError, TypeError):
                    pass

        env_log_level = _env_str("LOG_LEVEL")
        if env_log_level:
            data.pop("log_level", None)
            data["log_level"] = env_log_level.upper()

        return data

    @field_validator("hashtag", mode="before")
    @classmethod
    def _strip_hashtag(cls, value: Any) -> str:
        if value is None:
            raise ValueError("hashtag is required")
        value = str(value).strip().lstrip("#").strip()
        if not value:
            raise ValueError("hashtag cannot be empty")
        return value

    @field_validator("working_dir", mode="before")
    @classmethod
    def _load_working_dir_from_env(cls, value: Any) -> Optional[str]:
        """Load working directory from WORKING_DIR if not provided."""
        if value is not None and str(value).strip():
            return str(value).strip()
        return _env_str("WORKING_DIR")

    @field_validator("max_results", mode="before")
    @classmethod
    def _coerce_max_results(cls, value: Any) -> int:
        if value is None or value == "":
            return DEFAULT_MAX_RESULTS
        try:
            parsed = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("max_results must be an integer") from exc
        if parsed < 1:
            raise ValueError("max_results must be at least 1")
        return parsed

    @field_validator("whisper_model", mode="before")
    @classmethod
    def _coerce_whisper_model(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_WHISPER_MODEL
        return str(value).strip() or DEFAULT_WHISPER_MODEL

    @field_validator("whisper_model", mode="after")
    @classmethod
    def _validate_whisper_model(cls, value: str) -> str:
        if value not in VALID_WHISPER_MODELS:
            raise ValueError(f"whisper_model must be one of {VALID_WHISPER_MODELS}, got: {value}")
        return value

    @field_validator("language", "apify_token", mode="before")
    @classmethod
    def _strip_optional(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("download_workers", "transcription_workers", mode="after")
    @classmethod
    def _validate_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("worker counts must be at least 1")
        return value

    @field_validator("poll_interval_seconds", mode="after")
    @classmethod
    def _validate_poll_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("poll_interval must be positive")
        return value

    @field_validator("timeout", mode="before")
    @classmethod
    def _ensure_timeout(cls, value: Any) -> Optional[int]:
        if value is None or value == "":
            return None
        try:
            timeout = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("timeout must be an integer") from exc
        return max(MIN_TIMEOUT_SECONDS, timeout)

    @field_validator("apify_actor_id", "apify_api_base", mode="before")
    @classmethod
    def _require_non_empty(cls, value: Any) -> str:
        value_str = str(value).strip() if value is not None else ""
        if not value_str:
            raise ValueError("Apify actor id and API base cannot be empty")
        return value_str.rstrip("/")

    @field_validator("user_agent", mode="before")
    @classmethod
    def _coerce_user_agent(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_USER_AGENT
        return str(value).strip() or DEFAULT_USER_AGENT

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        """Normalize log level value."""
        if value is None:
            return DEFAULT_LOG_LEVEL
        return str(value).strip().upper() or DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="after")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        """Validate log level is one of the valid levels."""
        if value not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}, got: {value}")
        return value

    @field_validator("log_file", mode="before")
    @classmethod
    def _load_log_file_from_env(cls, value: Any) -> Optional[str]:
        """Load log file path from LOG_FILE if not provided."""
        if value is not None and str(value).strip():
            return str(value).strip()
        return _env_str("LOG_FILE")


def load_config_file(path: str) -> Dict[str, Any]:
    """Load configuration from a JSON or YAML file.

    The file format is auto-detected from the extension (`.json`, `.yaml` or
    `.yml`). The returned dictionary can be unpacked into `Config`.

    Args:
        path: Path to the configuration file. Supports tilde expansion.

    Returns:
        Dict[str, Any]: Configuration values keyed by `Config` field names or aliases.

    Raises:
        ValueError: If the path is empty, missing, has an unsupported extension,
            fails to parse, or does not contain a mapping at the top level.

    Example:
        >>> from video_scraper import Config, load_config_file, run_pipeline
        >>> cfg = Config(**load_config_file("config.yaml"))
        >>> result = run_pipeline(cfg)
    """
    if not path:
        raise ValueError("Config path cannot be empty")

    cfg_path = Path(path).expanduser()
    try:
        resolved = cfg_path.resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid config path: {path} ({exc})") from exc

    if not resolved.exists():
        raise ValueError(f"Config file not found: {resolved}")

    suffix = resolved.suffix.lower()
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Failed to read config file {resolved}: {exc}") from exc

    if suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON config file {resolved}: {exc}") from exc
    elif suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:  # type: ignore[attr-defined]
            raise ValueError(f"Invalid YAML config file {resolved}: {exc}") from exc
    else:
        raise ValueError(f"Unsupported config file type: {resolved.suffix}")

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping/object at the top level")

    return data
