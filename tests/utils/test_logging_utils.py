"""
Tests for logging utilities and the reproduction attempt context.
"""

import contextvars
import logging
import unittest

from reprokit.utils import logging_utils
from reprokit.utils.context import ReproAttempt, ReproContext
from reprokit.utils.logging_utils import (
    ColoredFormatter,
    ColoredTracingFormatter,
    TracingFormatter,
    add_file_handler,
    disable_third_party_logs,
    get_logger,
    set_log_level,
    setup_logging,
)


def _record(message="hello", level=logging.INFO):
    return logging.LogRecord("test", level, __file__, 1, message, None, None)


class LoggingStateMixin:
    """Reset global logging state around each test."""

    def setUp(self):
        logging_utils._LOGGER_CONFIGURED = False
        logging_utils._LOG_LEVEL = logging.INFO
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

    def tearDown(self):
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            handler.close()
            root_logger.removeHandler(handler)
        logging_utils._LOGGER_CONFIGURED = False
        logging_utils._LOG_LEVEL = logging.INFO


class TestSetupLogging(LoggingStateMixin, unittest.TestCase):
    """Test setup_logging and friends."""

    def test_setup_logging_with_custom_level(self):
        setup_logging(level=logging.DEBUG)
        self.assertEqual(logging.getLogger().level, logging.DEBUG)
        self.assertTrue(logging_utils._LOGGER_CONFIGURED)

    def test_setup_logging_only_once(self):
        setup_logging(level=logging.DEBUG)
        setup_logging(level=logging.ERROR)
        self.assertEqual(logging.getLogger().level, logging.DEBUG)

    def test_setup_logging_force(self):
        setup_logging(level=logging.DEBUG)
        setup_logging(level=logging.ERROR, force=True)
        self.assertEqual(logging.getLogger().level, logging.ERROR)
        self.assertEqual(len(logging.getLogger().handlers), 1)

    def test_setup_logging_with_file(self):
        import tempfile
        from pathlib import Path

        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / "logs" / "run.log"
            setup_logging(log_file=log_file, use_tracing=True)
            get_logger("reprokit.test").info("to file")
            for handler in logging.getLogger().handlers:
                handler.flush()
            self.assertIn("to file", log_file.read_text())
            for handler in logging.getLogger().handlers[:]:
                handler.close()
                logging.getLogger().removeHandler(handler)

    def test_formatter_selection(self):
        setup_logging(use_tracing=True, use_colors=True)
        self.assertIsInstance(logging.getLogger().handlers[0].formatter, ColoredTracingFormatter)

    def test_get_logger_configures(self):
        logger = get_logger("reprokit.something")
        self.assertEqual(logger.name, "reprokit.something")
        self.assertTrue(logging_utils._LOGGER_CONFIGURED)

    def test_set_log_level(self):
        setup_logging()
        set_log_level(logging.WARNING)
        self.assertEqual(logging.getLogger().level, logging.WARNING)
        for handler in logging.getLogger().handlers:
            self.assertEqual(handler.level, logging.WARNING)

    def test_add_file_handler(self):
        import tempfile
        from pathlib import Path

        setup_logging()
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / "extra.log"
            add_file_handler(log_file)
            self.assertTrue(any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers))
            for handler in logging.getLogger().handlers[:]:
                handler.close()
                logging.getLogger().removeHandler(handler)

    def test_disable_third_party_logs(self):
        logging.getLogger("sklearn").setLevel(logging.DEBUG)
        disable_third_party_logs()
        self.assertEqual(logging.getLogger("sklearn").level, logging.WARNING)


class TestFormatters(unittest.TestCase):
    """Test the custom formatters."""

    def test_tracing_formatter_outside_attempt(self):
        formatter = TracingFormatter("%(attempt_id)s|%(stage)s|%(message)s")
        output = contextvars.Context().run(formatter.format, _record())
        self.assertEqual(output, "-|-|hello")

    def test_tracing_formatter_inside_attempt(self):
        formatter = TracingFormatter("%(attempt_id)s|%(stage)s|%(message)s")
        with ReproAttempt(stage="initialized", attempt_id="abc123"):
            ReproContext.set_stage("retrained")
            self.assertEqual(formatter.format(_record()), "abc123|retrained|hello")

    def test_colored_formatter_restores_levelname(self):
        formatter = ColoredFormatter("%(levelname)s %(message)s")
        record = _record(level=logging.ERROR)
        output = formatter.format(record)
        self.assertIn("\033[31m", output)
        self.assertEqual(record.levelname, "ERROR")


class TestReproContext(unittest.TestCase):
    """Test the attempt context."""

    def test_defaults(self):
        fresh = contextvars.Context()
        self.assertIsNone(fresh.run(ReproContext.get_attempt_id))
        self.assertIsNone(fresh.run(ReproContext.get_stage))

    def test_attempt_scope(self):
        before = (ReproContext.get_attempt_id(), ReproContext.get_stage())
        with ReproAttempt(stage="initialized") as attempt:
            self.assertEqual(len(attempt.attempt_id), 12)
            self.assertEqual(ReproContext.get_attempt_id(), attempt.attempt_id)
            self.assertEqual(ReproContext.get_stage(), "initialized")
            context = ReproContext.to_dict()
            self.assertEqual(context["attempt_id"], attempt.attempt_id)
            self.assertIn("timestamp", context)
        self.assertEqual((ReproContext.get_attempt_id(), ReproContext.get_stage()), before)

    def test_nested_attempts_restore_outer(self):
        with ReproAttempt(stage="outer", attempt_id="outer-id"):
            with ReproAttempt(stage="inner", attempt_id="inner-id"):
                self.assertEqual(ReproContext.get_attempt_id(), "inner-id")
            self.assertEqual(ReproContext.get_attempt_id(), "outer-id")
            self.assertEqual(ReproContext.get_stage(), "outer")


if __name__ == "__main__":
    unittest.main()
