#!/usr/bin/env python3
"""Tests for the Apify actor-run client."""

import unittest
from unittest.mock import MagicMock

import pytest
import requests

from conftest import create_apify_item, MockHTTPResponse, TEST_API_BASE  # noqa: E402

from video_scraper.apify import ApifyClient, build_actor_payload
from video_scraper.exceptions import RemoteServiceError


def _json_response(payload, status_code=200):
    return MockHTTPResponse(json_data=payload, status_code=status_code)


@pytest.mark.unit
class TestBuildActorPayload(unittest.TestCase):
    def test_payload_requests_videos_only(self):
        payload = build_actor_payload("cats", 25)
        self.assertEqual(payload["hashtags"], ["cats"])
        self.assertEqual(payload["resultsPerPage"], 25)
        self.assertTrue(payload["shouldDownloadVideos"])
        self.assertFalse(payload["shouldDownloadCovers"])
        self.assertFalse(payload["shouldDownloadSlideshowImages"])
        self.assertFalse(payload["shouldDownloadSubtitles"])
        self.assertFalse(payload["excludePinnedPosts"])
        self.assertEqual(payload["videoKvStoreIdOrName"], "videos")


@pytest.mark.unit
class TestApifyClient(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.sleep = MagicMock()
        self.client = ApifyClient(
            token="secret",
            actor_id="actor123",
            api_base=TEST_API_BASE + "/",
            poll_interval=5.0,
            timeout=20,
            session=self.session,
            sleep=self.sleep,
        )

    def test_submit_returns_run_id(self):
        self.session.request.return_value = _json_response({"data": {"id": "run-1"}}, 201)

        run_id = self.client.submit("cats", 10)

        self.assertEqual(run_id, "run-1")
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("POST", f"{TEST_API_BASE}/acts/actor123/runs"))
        self.assertEqual(kwargs["headers"], {"Authorization": "Bearer secret"})
        self.assertEqual(kwargs["timeout"], 20)
        self.assertEqual(kwargs["json"], build_actor_payload("cats", 10))

    def test_submit_non_success_status_raises(self):
        self.session.request.return_value = MockHTTPResponse(
            status_code=401, text='{"error": "invalid token"}'
        )

        with self.assertRaises(RemoteServiceError) as ctx:
            self.client.submit("cats", 10)
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertIn("invalid token", ctx.exception.body)
        self.assertIn("HTTP 401", str(ctx.exception))

    def test_submit_without_run_id_raises(self):
        self.session.request.return_value = _json_response({"data": {}})
        with self.assertRaises(RemoteServiceError):
            self.client.submit("cats", 10)

    def test_non_json_body_raises(self):
        self.session.request.return_value = MockHTTPResponse(text="<html>oops</html>")
        with self.assertRaises(RemoteServiceError):
            self.client.get_status("run-1")

    def test_transport_error_wrapped(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(RemoteServiceError) as ctx:
            self.client.get_status("run-1")
        self.assertIsNone(ctx.exception.status_code)
        self.assertIsInstance(ctx.exception.__cause__, requests.ConnectionError)

    def test_get_status(self):
        self.session.request.return_value = _json_response({"data": {"status": "RUNNING"}})
        self.assertEqual(self.client.get_status("run-1"), "RUNNING")
        args, _ = self.session.request.call_args
        self.assertEqual(args, ("GET", f"{TEST_API_BASE}/actor-runs/run-1"))

    def test_await_completion_polls_until_terminal(self):
        self.session.request.side_effect = [
            _json_response({"data": {"status": "READY"}}),
            _json_response({"data": {"status": "RUNNING"}}),
            _json_response({"data": {"status": "SUCCEEDED"}}),
        ]

        status = self.client.await_completion("run-1")

        self.assertEqual(status, "SUCCEEDED")
        self.assertEqual(self.session.request.call_count, 3)
        self.assertEqual(self.sleep.call_count, 2)
        self.sleep.assert_called_with(5.0)

    def test_await_completion_returns_failed_status(self):
        for terminal in ("FAILED", "ABORTED", "TIMED-OUT"):
            self.session.request.side_effect = [_json_response({"data": {"status": terminal}})]
            self.assertEqual(self.client.await_completion("run-1"), terminal)
        self.sleep.assert_not_called()

    def test_await_completion_propagates_status_errors(self):
        self.session.request.side_effect = [
            _json_response({"data": {"status": "RUNNING"}}),
            MockHTTPResponse(status_code=500, text="internal"),
        ]
        with self.assertRaises(RemoteServiceError):
            self.client.await_completion("run-1")

    def test_fetch_results_indexes_items(self):
        items = [create_apify_item(0), create_apify_item(1), create_apify_item(2)]
        self.session.request.return_value = _json_response(items)

        records = self.client.fetch_results("run-1")

        self.assertEqual([record.index for record in records], [0, 1, 2])
        self.assertEqual(records[2].id, "700002")
        args, _ = self.session.request.call_args
        self.assertEqual(args, ("GET", f"{TEST_API_BASE}/actor-runs/run-1/dataset/items"))

    def test_fetch_results_requires_array(self):
        self.session.request.return_value = _json_response({"items": []})
        with self.assertRaises(RemoteServiceError):
            self.client.fetch_results("run-1")

    def test_error_body_truncated(self):
        self.session.request.return_value = MockHTTPResponse(status_code=502, text="x" * 5000)
        with self.assertRaises(RemoteServiceError) as ctx:
            self.client.get_status("run-1")
        self.assertEqual(len(ctx.exception.body), 2000)

    def test_close_closes_session(self):
        self.client.close()
        self.session.close.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
