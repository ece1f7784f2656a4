"""Custom exceptions for video_scraper.

Fatal errors end a pipeline run; item errors are converted into failure
results by the stage that raised them and never abort sibling items.

Exception Hierarchy:
    VideoScraperError (base)
    ├── PreconditionError - Missing working directory or credential
    │   └── ProviderDependencyError - Whisper missing or model load failure
    ├── RemoteServiceError - Non-success response from the scraping service
    └── ItemError - Single item failure (recorded, never propagated)
        ├── ItemDownloadError
        └── ItemTranscriptionError
            └── FileMissingError
"""

from typing import Optional


class VideoScraperError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        stage: Pipeline stage that raised the error (e.g., "setup", "fetch")
        suggestion: Optional suggestion for resolving the error
    """

    def __init__(
        self,
        message: str,
        stage: str = "pipeline",
        suggestion: Optional[str] = None,
    ) -> None:
        self.stage = stage
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message with stage and suggestion."""
        parts = [f"[{self.stage}] {self.message}"]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " ".join(parts)


class PreconditionError(VideoScraperError):
    """Raised before any work starts when the environment is not usable.

    Example:
        >>> raise PreconditionError(
        ...     message="APIFY_TOKEN is not set",
        ...     suggestion="Export APIFY_TOKEN or add it to .env",
        ... )
    """

    def __init__(
        self,
        message: str,
        stage: str = "setup",
        suggestion: Optional[str] = None,
    ) -> None:
        super().__init__(message=message, stage=stage, suggestion=suggestion)


class ProviderDependencyError(PreconditionError):
    """Raised when the transcription backend cannot be imported or loaded."""

    def __init__(
        self,
        message: str,
        dependency: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.dependency = dependency
        if dependency and dependency not in message:
            message = f"{message} (dependency: {dependency})"
        super().__init__(message=message, stage="setup", suggestion=suggestion)


class RemoteServiceError(VideoScraperError):
    """Raised when the scraping service answers with a non-success status.

    Attributes:
        status_code: HTTP status code, or None when the failure is not HTTP level
        body: Raw response body as returned by the service
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        stage: str = "fetch",
    ) -> None:
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message} (HTTP {status_code})"
        if body:
            message = f"{message}: {body}"
        super().__init__(message=message, stage=stage)


class ItemError(VideoScraperError):
    """Failure of a single item; carries the index that correlates it."""

    kind = "item_error"

    def __init__(self, index: int, message: str, stage: str) -> None:
        self.index = index
        self.reason = message
        super().__init__(message=f"item {index}: {message}", stage=stage)


class ItemDownloadError(ItemError):
    kind = "download_error"

    def __init__(self, index: int, message: str) -> None:
        super().__init__(index=index, message=message, stage="download")


class ItemTranscriptionError(ItemError):
    kind = "transcription_error"

    def __init__(self, index: int, message: str) -> None:
        super().__init__(index=index, message=message, stage="transcription")


class FileMissingError(ItemTranscriptionError):
    """Raised when a media file vanished between download and transcription."""

    kind = "file_missing"
