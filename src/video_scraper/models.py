from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

ANALYSIS_COLUMNS: Tuple[str, ...] = (
    "id",
    "text",
    "createTimeISO",
    "diggCount",
    "shareCount",
    "playCount",
    "collectCount",
    "commentCount",
    "transcription_text",
    "transcription_language",
)

ENRICHMENT_FIELDS: Tuple[str, ...] = (
    "video_path",
    "transcription_text",
    "transcription_language",
)


@dataclass(frozen=True)
class SourceRecord:
    """One scraped video record as returned by the scraping actor.

    The raw mapping is kept untouched; accessors read the handful of fields
    the pipeline relies on.

    Attributes:
        index: 0-based position in the fetched result list. It is the
            correlation key for every download and transcription result.
        raw: Provider record fields (id, text, createTimeISO, counters,
            mediaUrls, ...).

    Example:
        >>> record = SourceRecord(index=0, raw={"id": "7", "mediaUrls": ["https://v/1.mp4"]})
        >>> record.media_url
        'https://v/1.mp4'
    """

    index: int
    raw: Mapping[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> Optional[str]:
        value = self.raw.get("id")
        return None if value is None else str(value)

    @property
    def text(self) -> Optional[str]:
        return self.raw.get("text")

    @property
    def create_time(self) -> Optional[str]:
        return self.raw.get("createTimeISO")

    @property
    def digg_count(self) -> Optional[int]:
        return self.raw.get("diggCount")

    @property
    def share_count(self) -> Optional[int]:
        return self.raw.get("shareCount")

    @property
    def play_count(self) -> Optional[int]:
        return self.raw.get("playCount")

    @property
    def collect_count(self) -> Optional[int]:
        return self.raw.get("collectCount")

    @property
    def comment_count(self) -> Optional[int]:
        return self.raw.get("commentCount")

    @property
    def media_url(self) -> Optional[str]:
        """First downloadable media URL, or None when the record has none."""
        urls = self.raw.get("mediaUrls")
        if isinstance(urls, str):
            return urls.strip() or None
        if isinstance(urls, (list, tuple)):
            for url in urls:
                if isinstance(url, str) and url.strip():
                    return url.strip()
        return None


@dataclass(frozen=True)
class DownloadResult:
    """Outcome of fetching one media file.

    Attributes:
        index: Index of the originating SourceRecord.
        success: True when the file is present at ``path``.
        path: Local media path (successful results only).
        error: Failure reason (failed results only).
        skipped: True when the file already existed and nothing was fetched.
        bytes_downloaded: Bytes written by this call (0 when skipped or failed).
    """

    index: int
    success: bool
    path: Optional[str] = None
    error: Optional[str] = None
    skipped: bool = False
    bytes_downloaded: int = 0

    @classmethod
    def ok(cls, index: int, path: str, *, skipped: bool = False, bytes_downloaded: int = 0):
        return cls(
            index=index,
            success=True,
            path=path,
            skipped=skipped,
            bytes_downloaded=bytes_downloaded,
        )

    @classmethod
    def failed(cls, index: int, error: str):
        return cls(index=index, success=False, error=error)


@dataclass(frozen=True)
class Transcript:
    """Text and detected language returned by a transcription provider."""

    text: str
    language: Optional[str] = None


@dataclass(frozen=True)
class TranscriptionResult:
    """Outcome of transcribing one media file.

    Attributes:
        index: Index of the originating SourceRecord.
        success: True when text and language are set.
        text: Transcribed text.
        language: Detected or configured language code.
        transcript_path: Per-item transcript file written on success.
        error: Failure reason (failed results only).
        error_kind: "file_missing" or "transcription_error" on failure.
    """

    index: int
    success: bool
    text: Optional[str] = None
    language: Optional[str] = None
    transcript_path: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def ok(cls, index: int, transcript: Transcript, transcript_path: Optional[str] = None):
        return cls(
            index=index,
            success=True,
            text=transcript.text,
            language=transcript.language,
            transcript_path=transcript_path,
        )

    @classmethod
    def failed(cls, index: int, error: str, error_kind: str):
        return cls(index=index, success=False, error=error, error_kind=error_kind)


@dataclass
class EnrichedRecord:
    """A SourceRecord plus the fields filled in by download and transcription."""

    source: SourceRecord
    video_path: Optional[str] = None
    transcription_text: Optional[str] = None
    transcription_language: Optional[str] = None

    @property
    def index(self) -> int:
        return self.source.index

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.source.raw)
        data["video_path"] = self.video_path
        data["transcription_text"] = self.transcription_text
        data["transcription_language"] = self.transcription_language
        return data


@dataclass(frozen=True)
class AnalysisRow:
    """Fixed-column projection of an EnrichedRecord for analysis exports."""

    id: Optional[str]
    text: Optional[str]
    createTimeISO: Optional[str]
    diggCount: Optional[int]
    shareCount: Optional[int]
    playCount: Optional[int]
    collectCount: Optional[int]
    commentCount: Optional[int]
    transcription_text: Optional[str]
    transcription_language: Optional[str]

    @classmethod
    def from_enriched(cls, record: EnrichedRecord) -> "AnalysisRow":
        source = record.source
        return cls(
            id=source.id,
            text=source.text,
            createTimeISO=source.create_time,
            diggCount=source.digg_count,
            shareCount=source.share_count,
            playCount=source.play_count,
            collectCount=source.collect_count,
            commentCount=source.comment_count,
            transcription_text=record.transcription_text,
            transcription_language=record.transcription_language,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {column: getattr(self, column) for column in ANALYSIS_COLUMNS}
