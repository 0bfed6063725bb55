from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from codeon.logger import configure_logging
from codeon.settings import Settings, default_data_dir


class SettingsTest(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        self.assertEqual(settings.sandbox, "piston")
        self.assertEqual(settings.language, "csharp")
        self.assertEqual(settings.lint_debounce, 0.5)
        self.assertEqual(settings.data_dir, default_data_dir())
        self.assertEqual(settings.db_path, default_data_dir() / "codeon.db")

    def test_reads_codeon_variables(self) -> None:
        settings = Settings.from_env({
            "CODEON_SANDBOX": "docker",
            "CODEON_DATA_DIR": "/tmp/codeon-test",
            "CODEON_SANDBOX_TIMEOUT": "12.5",
            "CODEON_SYNC_MAX_ATTEMPTS": "2",
            "CODEON_PISTON_URL": "",
            "HOME": "/ignored",
        })
        self.assertEqual(settings.sandbox, "docker")
        self.assertEqual(settings.data_dir, Path("/tmp/codeon-test"))
        self.assertEqual(settings.log_dir, Path("/tmp/codeon-test/logs"))
        self.assertEqual(settings.sandbox_timeout, 12.5)
        self.assertEqual(settings.sync_max_attempts, 2)
        self.assertEqual(settings.piston_url, "https://emkc.org/api/v2/piston")

    def test_rejects_unknown_backend(self) -> None:
        with self.assertRaises(ValidationError):
            Settings.from_env({"CODEON_SANDBOX": "wasm"})


class LoggingTest(unittest.TestCase):
    def setUp(self) -> None:
        self.logger = logging.getLogger("codeon")
        self._saved = list(self.logger.handlers)
        for handler in self._saved:
            self.logger.removeHandler(handler)

    def tearDown(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)
        for handler in self._saved:
            self.logger.addHandler(handler)

    def test_writes_rotating_log_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            log_dir = Path(temp_dir) / "logs"
            logger = configure_logging(log_dir, "debug", console=False)

            logging.getLogger("codeon.session").debug("session closed")
            for handler in logger.handlers:
                handler.flush()

            self.assertEqual(len(logger.handlers), 1)
            content = (log_dir / "codeon.log").read_text(encoding="utf-8")
            self.assertIn("[DEBUG] codeon.session: session closed", content)

            # A second call keeps the existing handlers.
            self.assertIs(configure_logging(log_dir), logger)
            self.assertEqual(len(logger.handlers), 1)

            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)


if __name__ == "__main__":
    unittest.main()
