#!/usr/bin/env python3
"""Tests for record and result models."""

import unittest

import pytest

from conftest import create_apify_item  # noqa: E402

from video_scraper.models import (
    ANALYSIS_COLUMNS,
    AnalysisRow,
    DownloadResult,
    EnrichedRecord,
    SourceRecord,
    Transcript,
    TranscriptionResult,
)


@pytest.mark.unit
class TestSourceRecord(unittest.TestCase):
    def test_accessors_read_raw_fields(self):
        record = SourceRecord(index=3, raw=create_apify_item(3))
        self.assertEqual(record.id, "700003")
        self.assertEqual(record.create_time, "2024-05-04T12:00:00.000Z")
        self.assertEqual(record.digg_count, 103)
        self.assertEqual(record.comment_count, 6)
        self.assertEqual(record.media_url, "https://cdn.example.com/videos/3.mp4")

    def test_media_url_skips_empty_entries(self):
        record = SourceRecord(index=0, raw={"mediaUrls": ["", None, " https://v/a.mp4 "]})
        self.assertEqual(record.media_url, "https://v/a.mp4")

    def test_media_url_accepts_plain_string(self):
        record = SourceRecord(index=0, raw={"mediaUrls": "https://v/b.mp4"})
        self.assertEqual(record.media_url, "https://v/b.mp4")

    def test_media_url_missing(self):
        self.assertIsNone(SourceRecord(index=0, raw={}).media_url)
        self.assertIsNone(SourceRecord(index=0, raw={"mediaUrls": []}).media_url)

    def test_numeric_id_is_stringified(self):
        self.assertEqual(SourceRecord(index=0, raw={"id": 123}).id, "123")
        self.assertIsNone(SourceRecord(index=0, raw={}).id)


@pytest.mark.unit
class TestResults(unittest.TestCase):
    def test_download_result_constructors(self):
        ok = DownloadResult.ok(1, "/tmp/v.mp4", bytes_downloaded=42)
        self.assertTrue(ok.success)
        self.assertEqual(ok.bytes_downloaded, 42)
        self.assertFalse(ok.skipped)
        self.assertIsNone(ok.error)

        failed = DownloadResult.failed(2, "boom")
        self.assertFalse(failed.success)
        self.assertIsNone(failed.path)
        self.assertEqual(failed.error, "boom")

    def test_transcription_result_constructors(self):
        ok = TranscriptionResult.ok(4, Transcript(text="hi", language="en"), "/t/4.txt")
        self.assertEqual((ok.index, ok.text, ok.language), (4, "hi", "en"))
        self.assertIsNone(ok.error_kind)

        failed = TranscriptionResult.failed(5, "gone", "file_missing")
        self.assertFalse(failed.success)
        self.assertIsNone(failed.text)
        self.assertEqual(failed.error_kind, "file_missing")


@pytest.mark.unit
class TestEnrichedRecord(unittest.TestCase):
    def test_to_dict_keeps_raw_fields_and_adds_enrichment(self):
        record = EnrichedRecord(source=SourceRecord(index=0, raw=create_apify_item(0)))
        data = record.to_dict()
        self.assertEqual(data["authorMeta"], {"name": "creator0"})
        self.assertIsNone(data["video_path"])
        self.assertIsNone(data["transcription_text"])
        self.assertIsNone(data["transcription_language"])

    def test_to_dict_does_not_mutate_source(self):
        source = SourceRecord(index=0, raw={"id": "1"})
        EnrichedRecord(source=source, video_path="/v.mp4").to_dict()
        self.assertNotIn("video_path", source.raw)

    def test_analysis_row_projection(self):
        record = EnrichedRecord(
            source=SourceRecord(index=1, raw=create_apify_item(1)),
            video_path="/v.mp4",
            transcription_text="hello",
            transcription_language="en",
        )
        row = AnalysisRow.from_enriched(record).as_dict()
        self.assertEqual(tuple(row.keys()), ANALYSIS_COLUMNS)
        self.assertEqual(row["id"], "700001")
        self.assertEqual(row["playCount"], 1001)
        self.assertEqual(row["transcription_text"], "hello")
        self.assertNotIn("video_path", row)


if __name__ == "__main__":
    unittest.main()
