import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from config import Settings
from credential_store import (
    STORAGE_KEY,
    CredentialStore,
    check_api_key,
    validate_api_key_format,
)
from errors import ConfigurationError, TransportError


class TestCredentialStore(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "nested" / "credentials.json"

    def tearDown(self):
        self.tmp.cleanup()

    def test_nothing_stored(self):
        self.assertIsNone(CredentialStore(self.path).get_credential())

    def test_set_persists_raw_key(self):
        CredentialStore(self.path).set_credential("AIzaSecret")

        with self.path.open(encoding="utf-8") as f:
            self.assertEqual(json.load(f), {STORAGE_KEY: "AIzaSecret"})

        # A fresh store (new process) reads it back from disk
        self.assertEqual(CredentialStore(self.path).get_credential(), "AIzaSecret")

    def test_cached_value_survives_file_removal(self):
        store = CredentialStore(self.path)
        store.set_credential("AIzaSecret")
        self.path.unlink()

        self.assertEqual(store.get_credential(), "AIzaSecret")

    def test_clear(self):
        store = CredentialStore(self.path)
        store.set_credential("AIzaSecret")
        store.clear()

        self.assertIsNone(store.get_credential())
        self.assertIsNone(CredentialStore(self.path).get_credential())

    def test_corrupt_file_is_ignored(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")

        self.assertIsNone(CredentialStore(self.path).get_credential())


class TestKeyValidation(unittest.TestCase):
    def test_format(self):
        self.assertEqual(validate_api_key_format("  AIzaSyExample  "), "AIzaSyExample")

        with self.assertRaises(ConfigurationError):
            validate_api_key_format("   ")
        with self.assertRaises(ConfigurationError) as ctx:
            validate_api_key_format("sk-not-google")
        self.assertIn("AIza", str(ctx.exception))

    def test_live_key(self):
        client = mock.Mock()
        client.list_models.return_value = {"models": []}

        self.assertTrue(check_api_key("AIzaGood", Settings(), client=client))

    def test_rejected_key(self):
        client = mock.Mock()
        client.list_models.side_effect = TransportError("API request failed: Bad Request", status_code=400)

        self.assertFalse(check_api_key("AIzaBad", Settings(), client=client))

    def test_empty_key_is_invalid(self):
        self.assertFalse(check_api_key("", Settings()))


if __name__ == "__main__":
    unittest.main()
