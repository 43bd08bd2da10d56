import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import main
from analysis_service import normalize_result
from config import Settings
from credential_store import CredentialStore
from errors import RelayError
from models import DogInfo


PROFILE = {"name": "Rex", "breed": "Beagle", "age": 5, "weight": 25, "symptoms": ["Limping"]}


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.settings = Settings(credential_file=self.dir / "credentials.json")
        patcher = mock.patch("main.load_settings", return_value=self.settings)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.profile_path = self.dir / "rex.json"
        self.profile_path.write_text(json.dumps(PROFILE), encoding="utf-8")

    def tearDown(self):
        self.tmp.cleanup()

    def test_set_key_without_check(self):
        code = main.main(["set-key", "AIzaSyExample", "--skip-check"])

        self.assertEqual(code, 0)
        self.assertEqual(CredentialStore(self.settings.credential_file).get_credential(), "AIzaSyExample")

    def test_set_key_rejects_bad_prefix(self):
        code = main.main(["set-key", "not-a-key", "--skip-check"])

        self.assertEqual(code, 2)
        self.assertIsNone(CredentialStore(self.settings.credential_file).get_credential())

    @mock.patch("main.check_api_key", return_value=False)
    def test_set_key_rejected_by_google(self, check):
        code = main.main(["set-key", "AIzaSyExample"])

        self.assertEqual(code, 1)
        check.assert_called_once_with("AIzaSyExample", self.settings)
        self.assertIsNone(CredentialStore(self.settings.credential_file).get_credential())

    @mock.patch("main.create_analyzer")
    def test_analyze_writes_output(self, create_analyzer):
        dog = DogInfo.from_dict(PROFILE)
        create_analyzer.return_value.analyze.return_value = normalize_result({"confidence": 90}, dog)
        out = self.dir / "result.json"

        code = main.main(["analyze", str(self.profile_path), "--output", str(out)])

        self.assertEqual(code, 0)
        with out.open(encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data["confidence"], 90)
        self.assertEqual(data["dogInfo"]["name"], "Rex")

    @mock.patch("main.create_analyzer")
    def test_unwritable_output_is_reported(self, create_analyzer):
        dog = DogInfo.from_dict(PROFILE)
        create_analyzer.return_value.analyze.return_value = normalize_result({}, dog)
        out = self.dir / "missing-dir" / "result.json"

        code = main.main(["analyze", str(self.profile_path), "--output", str(out)])

        self.assertEqual(code, 1)
        self.assertFalse(out.exists())

    @mock.patch("main.create_analyzer")
    def test_analyze_mode_override(self, create_analyzer):
        create_analyzer.return_value.analyze.side_effect = RelayError("quota exceeded")

        code = main.main(["analyze", str(self.profile_path), "--mode", "relay"])

        self.assertEqual(code, 1)
        settings = create_analyzer.call_args[0][0]
        self.assertEqual(settings.analysis_mode, "relay")

    @mock.patch("main.create_analyzer")
    def test_invalid_profile_never_reaches_analyzer(self, create_analyzer):
        self.profile_path.write_text(json.dumps({"name": "Rex"}), encoding="utf-8")

        code = main.main(["analyze", str(self.profile_path)])

        self.assertEqual(code, 2)
        create_analyzer.assert_not_called()


if __name__ == "__main__":
    unittest.main()
