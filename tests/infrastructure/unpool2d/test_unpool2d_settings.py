import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from maxunpool.domain._errors import ConfigurationError
from maxunpool.infrastructure._settings import (
    ENV_CHECK_UNIQUE_MASK,
    ENV_STRATEGY,
    UnpoolSettings,
    load_settings,
)


class TestLoadSettings(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _write_env(self, text: str) -> Path:
        path = self.tmpdir / ".env"
        path.write_text(text, encoding="utf-8")
        return path

    def test_defaults(self):
        self.assertEqual(load_settings(environ={}), UnpoolSettings())
        self.assertEqual(UnpoolSettings().strategy, "reference")
        self.assertFalse(UnpoolSettings().check_unique_mask)

    def test_reads_environment(self):
        s = load_settings(
            environ={ENV_STRATEGY: " vectorized ", ENV_CHECK_UNIQUE_MASK: "TRUE"}
        )
        self.assertEqual(s.strategy, "vectorized")
        self.assertTrue(s.check_unique_mask)

    def test_reads_process_environment_by_default(self):
        with patch.dict(os.environ, {ENV_STRATEGY: "vectorized"}, clear=False):
            os.environ.pop(ENV_CHECK_UNIQUE_MASK, None)
            s = load_settings()
        self.assertEqual(s.strategy, "vectorized")
        self.assertFalse(s.check_unique_mask)

    def test_boolean_spellings(self):
        for raw, expected in [
            ("1", True), ("yes", True), ("On", True),
            ("0", False), ("no", False), ("OFF", False), ("false", False),
        ]:
            with self.subTest(raw=raw):
                s = load_settings(environ={ENV_CHECK_UNIQUE_MASK: raw})
                self.assertIs(s.check_unique_mask, expected)

    def test_invalid_boolean(self):
        with self.assertRaises(ConfigurationError) as ctx:
            load_settings(environ={ENV_CHECK_UNIQUE_MASK: "maybe"})
        self.assertIn("must be a boolean flag", str(ctx.exception))

    def test_empty_values_fall_back_to_defaults(self):
        s = load_settings(environ={ENV_STRATEGY: "", ENV_CHECK_UNIQUE_MASK: ""})
        self.assertEqual(s, UnpoolSettings())

    def test_reads_dotenv_file(self):
        path = self._write_env(
            f"{ENV_STRATEGY}=vectorized\n{ENV_CHECK_UNIQUE_MASK}=on\n"
        )
        s = load_settings(path, environ={})
        self.assertEqual(s.strategy, "vectorized")
        self.assertTrue(s.check_unique_mask)

    def test_environment_overrides_dotenv_file(self):
        path = self._write_env(
            f"{ENV_STRATEGY}=vectorized\n{ENV_CHECK_UNIQUE_MASK}=1\n"
        )
        s = load_settings(path, environ={ENV_CHECK_UNIQUE_MASK: "0"})
        self.assertEqual(s.strategy, "vectorized")
        self.assertFalse(s.check_unique_mask)

    def test_dotenv_file_is_not_exported(self):
        path = self._write_env(f"{ENV_STRATEGY}=vectorized\n")
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop(ENV_STRATEGY, None)
            load_settings(path)
            self.assertNotIn(ENV_STRATEGY, os.environ)

    def test_missing_dotenv_file(self):
        with self.assertRaises(ConfigurationError):
            load_settings(self.tmpdir / "missing.env", environ={})

    def test_settings_are_frozen(self):
        s = UnpoolSettings()
        with self.assertRaises(Exception):
            s.strategy = "vectorized"  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
