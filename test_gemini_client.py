import unittest
from unittest import mock

import requests

from config import Settings
from errors import ConfigurationError, FormatError, TransportError
from gemini_client import RETRY_STATUSES, GeminiClient, build_session


def ok_response(payload):
    resp = mock.Mock()
    resp.ok = True
    resp.status_code = 200
    resp.json.return_value = payload
    resp.text = str(payload)
    return resp


class TestGeminiClient(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(request_timeout=12.5)
        self.session = mock.Mock()

    def test_requires_key(self):
        with self.assertRaises(ConfigurationError):
            GeminiClient("", self.settings, session=self.session)

    def test_list_models(self):
        self.session.request.return_value = ok_response({"models": [{"name": "models/gemini-1.5-pro"}]})
        client = GeminiClient("AIzaKey", self.settings, session=self.session)

        data = client.list_models()

        self.assertEqual(data["models"][0]["name"], "models/gemini-1.5-pro")
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "https://generativelanguage.googleapis.com/v1beta/models"))
        self.assertEqual(kwargs["timeout"], 12.5)

    def test_query_key_transport(self):
        settings = Settings(key_transport="query")
        self.session.request.return_value = ok_response({"models": []})
        client = GeminiClient("AIzaKey", settings, session=self.session)

        client.list_models()

        _, kwargs = self.session.request.call_args
        self.assertEqual(kwargs["params"], {"key": "AIzaKey"})
        self.assertNotIn("x-goog-api-key", kwargs["headers"])

    def test_generate_content_returns_first_candidate_text(self):
        self.session.request.return_value = ok_response({
            "candidates": [
                {"content": {"parts": [{"text": "first"}]}},
                {"content": {"parts": [{"text": "second"}]}},
            ]
        })
        client = GeminiClient("AIzaKey", self.settings, session=self.session)

        self.assertEqual(client.generate_content("hello"), "first")

    def test_generate_content_without_candidates(self):
        self.session.request.return_value = ok_response({"promptFeedback": {"blockReason": "SAFETY"}})
        client = GeminiClient("AIzaKey", self.settings, session=self.session)

        with self.assertRaises(FormatError):
            client.generate_content("hello")

    def test_network_failure(self):
        self.session.request.side_effect = requests.ConnectionError("connection refused")
        client = GeminiClient("AIzaKey", self.settings, session=self.session)

        with self.assertRaises(TransportError) as ctx:
            client.generate_content("hello")
        self.assertIsNone(ctx.exception.status_code)


class TestBuildSession(unittest.TestCase):
    def test_retry_policy_follows_settings(self):
        session = build_session(Settings(max_retries=4, retry_backoff=1.5))

        retry = session.get_adapter("https://generativelanguage.googleapis.com").max_retries
        self.assertEqual(retry.total, 4)
        self.assertEqual(retry.backoff_factor, 1.5)
        self.assertEqual(set(retry.status_forcelist), set(RETRY_STATUSES))
        self.assertFalse(retry.raise_on_status)


if __name__ == "__main__":
    unittest.main()
