"""
Unit tests for logging setup.
"""

import logging

from loglens.core.logging_config import setup_logging


def test_setup_logging_is_idempotent(test_config):
    logger = setup_logging("loglens.test_logging", settings=test_config)
    try:
        again = setup_logging("loglens.test_logging", settings=test_config)

        assert again is logger
        assert len(logger.handlers) == 2
        assert logger.level == logging.WARNING
        assert (test_config.logs_dir / "loglens.test_logging.log").exists()
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
