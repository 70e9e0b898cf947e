"""Tests for vellum logging module."""

import logging

from vellum import logging as vellum_logging


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_returns_vellum_logger(self):
        """setup_logging should return the project logger."""
        logger = vellum_logging.setup_logging()
        assert isinstance(logger, logging.Logger)
        assert logger.name == "vellum"

    def test_verbose_sets_debug_level(self):
        logger = vellum_logging.setup_logging(verbose=True)
        assert logger.level == logging.DEBUG

    def test_default_is_info_level(self):
        logger = vellum_logging.setup_logging()
        assert logger.level == logging.INFO

    def test_quiet_sets_warning_level(self):
        """quiet=True should hide progress messages."""
        logger = vellum_logging.setup_logging(quiet=True)
        assert logger.level == logging.WARNING

    def test_verbose_wins_over_quiet(self):
        logger = vellum_logging.setup_logging(verbose=True, quiet=True)
        assert logger.level == logging.DEBUG

    def test_repeated_setup_does_not_stack_handlers(self):
        """Calling setup twice should keep one stdout and one stderr handler."""
        vellum_logging.setup_logging()
        logger = vellum_logging.setup_logging()
        assert len(logger.handlers) == 2

    def test_does_not_propagate_to_root(self):
        logger = vellum_logging.setup_logging()
        assert logger.propagate is False


class TestGetLogger:
    """Tests for get_logger function."""

    def test_initializes_lazily(self):
        assert vellum_logging._logger is None
        logger = vellum_logging.get_logger()
        assert vellum_logging._logger is logger

    def test_returns_same_logger(self):
        assert vellum_logging.get_logger() is vellum_logging.get_logger()


class TestLoggingOutput:
    """Tests for output routing and formatting."""

    def test_info_goes_to_stdout_without_prefix(self, capsys):
        vellum_logging.setup_logging()
        vellum_logging.info("Built 3 pages")
        captured = capsys.readouterr()
        assert captured.out.strip() == "Built 3 pages"
        assert captured.err == ""

    def test_warning_goes_to_stderr_with_prefix(self, capsys):
        vellum_logging.setup_logging()
        vellum_logging.warning("Invalid date")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.strip() == "Warning: Invalid date"

    def test_error_goes_to_stderr_with_prefix(self, capsys):
        vellum_logging.setup_logging()
        vellum_logging.error("Failed to render posts/a.md")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.strip() == "Error: Failed to render posts/a.md"

    def test_debug_hidden_by_default(self, capsys):
        vellum_logging.setup_logging()
        vellum_logging.debug("indexing")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_debug_shown_when_verbose(self, capsys):
        vellum_logging.setup_logging(verbose=True)
        vellum_logging.debug("indexing")
        assert "indexing" in capsys.readouterr().out

    def test_quiet_hides_info_but_keeps_warnings(self, capsys):
        vellum_logging.setup_logging(quiet=True)
        vellum_logging.info("progress")
        vellum_logging.warning("problem")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Warning: problem" in captured.err


class TestLevelConstants:
    """Module-level constants mirror the logging module."""

    def test_constants(self):
        assert vellum_logging.DEBUG == logging.DEBUG
        assert vellum_logging.INFO == logging.INFO
        assert vellum_logging.WARNING == logging.WARNING
        assert vellum_logging.ERROR == logging.ERROR


class TestCountProblems:
    """Tests for counting warnings and errors during a build."""

    def test_counts_warnings_and_errors(self, capsys):
        vellum_logging.setup_logging()
        with vellum_logging.count_problems() as problems:
            vellum_logging.info("Building...")
            vellum_logging.warning("Invalid date in posts/a.md")
            vellum_logging.warning("Unknown config key")
            vellum_logging.error("Failed to render posts/b.md")

        assert (problems.warnings, problems.errors, problems.total) == (2, 1, 3)
        assert problems.summary() == "2 warnings, 1 error"
        assert "Warning: Unknown config key" in capsys.readouterr().err

    def test_detaches_after_block(self):
        logger = vellum_logging.setup_logging()
        with vellum_logging.count_problems() as problems:
            assert problems in logger.handlers
        vellum_logging.warning("late")

        assert problems not in logger.handlers
        assert problems.total == 0
        assert problems.summary() == ""

    def test_counts_when_quiet(self):
        vellum_logging.setup_logging(quiet=True)
        with vellum_logging.count_problems() as problems:
            vellum_logging.error("broken")

        assert problems.summary() == "1 error"
