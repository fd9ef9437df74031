import tempfile
import unittest
from pathlib import Path

from httplab.config.paths import HttplabPaths
from httplab.core import session_log
from httplab.core.session_log import SessionLogger, resolve_debug_config


class ResolveDebugConfigTests(unittest.TestCase):
    def test_disabled_values(self) -> None:
        for raw in (None, False, "", "off", "none", ["no"]):
            with self.subTest(raw=raw):
                selection = resolve_debug_config(raw)
                self.assertFalse(selection.enabled_types)
                self.assertFalse(selection.enabled_levels)

    def test_all_enables_everything(self) -> None:
        for raw in (True, "all", "true", ["all"]):
            with self.subTest(raw=raw):
                selection = resolve_debug_config(raw)
                self.assertEqual(selection.enabled_types, {"session"})
                self.assertEqual(selection.enabled_levels, set(session_log.LOG_LEVELS))

    def test_level_includes_more_severe_levels(self) -> None:
        selection = resolve_debug_config("warn")
        self.assertEqual(selection.enabled_levels, {"error", "warn"})
        self.assertFalse(selection.enabled_types)

    def test_comma_separated_tokens(self) -> None:
        selection = resolve_debug_config("session, info")
        self.assertEqual(selection.enabled_types, {"session"})
        self.assertEqual(selection.enabled_levels, {"error", "warn", "info"})


class SessionLoggerTests(unittest.TestCase):
    def _log_files(self, paths: HttplabPaths) -> list:
        return list(paths.logs_dir.glob("httplab_session_*.md"))

    def test_logger_disabled_creates_no_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = HttplabPaths(Path(tmp))
            logger = SessionLogger(paths, None)
            logger.log_level("ui", "error", "response.invalid", {"error": "x"})
            logger.log_exchange("server", request="GET /", status=200, delay_ms=0)
            self.assertFalse(paths.logs_dir.exists())

    def test_log_exchange_writes_markdown(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = HttplabPaths(Path(tmp))
            logger = SessionLogger(paths, "session")
            logger.log_exchange("server", request="GET /hook HTTP/1.1", status=202, delay_ms=5)
            logger.close()
            files = self._log_files(paths)
            self.assertEqual(len(files), 1)
            text = files[0].read_text(encoding="utf-8")
            self.assertIn("# HTTPLab Session Log", text)
            self.assertIn("server.exchange", text)
            self.assertIn("GET /hook HTTP/1.1", text)
            self.assertIn('"status": 202', text)

    def test_level_filtering(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = HttplabPaths(Path(tmp))
            logger = SessionLogger(paths, "warn")
            logger.log_level("ui", "warn", "response.invalid", {"error": "bad"})
            logger.log_level("ui", "info", "response.saved", {"status": 200})
            logger.close()
            text = self._log_files(paths)[0].read_text(encoding="utf-8")
            self.assertIn("response.invalid", text)
            self.assertNotIn("response.saved", text)

    def test_log_exception(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = HttplabPaths(Path(tmp))
            logger = SessionLogger(paths, "error")
            try:
                raise ValueError("boom")
            except ValueError as exc:
                logger.log_exception("server", exc)
            logger.close()
            text = self._log_files(paths)[0].read_text(encoding="utf-8")
            self.assertIn("ValueError", text)
            self.assertIn("boom", text)

    def test_module_helpers_use_active_logger(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = HttplabPaths(Path(tmp))
            logger = SessionLogger(paths, "debug")
            session_log.set_active_logger(logger)
            try:
                session_log.log_info("ui", "response.saved", {"status": 201})
                self.assertIs(session_log.get_active_logger(), logger)
            finally:
                session_log.set_active_logger(None)
            session_log.log_info("ui", "after.reset")
            text = self._log_files(paths)[0].read_text(encoding="utf-8")
            self.assertIn("response.saved", text)
            self.assertNotIn("after.reset", text)


if __name__ == "__main__":
    unittest.main()
