"""Configuration constants for video_scraper.

All constants are re-exported from config.py for convenience.
"""

import os

# General defaults
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/119.0 Safari/537.36"
)
DEFAULT_MAX_RESULTS = 100
DEFAULT_DOWNLOAD_WORKERS = max(1, min(8, os.cpu_count() or 4))
# Whisper holds a full model per worker, so transcription stays narrow
DEFAULT_TRANSCRIPTION_WORKERS = max(1, min(2, (os.cpu_count() or 2) - 1))
MIN_TIMEOUT_SECONDS = 1

# Apify
DEFAULT_APIFY_API_BASE = "https://api.apify.com/v2"
DEFAULT_APIFY_ACTOR_ID = "OtzYfK1ndEGdwWFKQ"
DEFAULT_POLL_INTERVAL_SECONDS = 5.0
APIFY_TOKEN_ENV_VAR = "APIFY_TOKEN"
APIFY_STATUS_SUCCEEDED = "SUCCEEDED"
APIFY_TERMINAL_STATUSES = frozenset({"SUCCEEDED", "FAILED", "ABORTED", "TIMED-OUT"})
APIFY_VIDEO_KV_STORE = "videos"

# Workspace layout
VIDEOS_DIRNAME = "videos"
TRANSCRIPTS_DIRNAME = "transcriptions"
MEDIA_FILENAME_PREFIX = "video_"
MEDIA_EXTENSION = ".mp4"
TRANSCRIPT_FILENAME_PREFIX = "transcript_"
TRANSCRIPT_EXTENSION = ".txt"
INDEX_PAD_WIDTH = 4
PARTIAL_FILE_SUFFIX = ".part"

# Dataset artifacts
CHECKPOINT_FILENAME = "video_dataset.json"
MERGED_DATASET_FILENAME = "merged_dataset.json"
ANALYSIS_DATASET_FILENAME = "analysis_dataset.csv"
RUN_SUMMARY_FILENAME = "run.json"
FAILURE_LOG_FILENAME = "failures.jsonl"

# Whisper
DEFAULT_WHISPER_MODEL = "tiny"
VALID_WHISPER_MODELS = (
    "tiny",
    "base",
    "small",
    "medium",
    "large",
    "large-v2",
    "large-v3",
    "tiny.en",
    "base.en",
    "small.en",
    "medium.en",
)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
