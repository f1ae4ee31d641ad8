"""Tests for logging setup."""

import logging

from rebuild_scope.logging_config import get_logger, setup_logging


class TestGetLogger:
    def test_root(self):
        assert get_logger().name == "rebuild_scope"

    def test_namespaced(self):
        assert get_logger("rebuild_scope.vcs.differ").name == "rebuild_scope.vcs.differ"

    def test_prefixed(self):
        assert get_logger("analysis").name == "rebuild_scope.analysis"


class TestSetupLogging:
    def test_levels(self):
        assert setup_logging().level == logging.INFO
        assert setup_logging(verbose=True).level == logging.DEBUG
        assert setup_logging(quiet=True).level == logging.ERROR
        assert setup_logging(verbose=True, quiet=True).level == logging.ERROR
