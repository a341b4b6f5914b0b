"""logging setup for minibatchlib"""
import logging
import os

LOGGER_NAME = "minibatchlib"


def enable_verbose_logging():
    """
    Enable debug level logging for minibatchlib
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.info("minibatchlib's logging level is set to DEBUG")


def _setup_logger():
    """setup logger"""
    logger = logging.getLogger(LOGGER_NAME)
    console = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s %(filename)s:%(lineno)s %(levelname)s "
        "t:%(threadName)s: %(message)s"
    )
    console.setFormatter(formatter)
    console.setLevel(logging.DEBUG)
    logger.addHandler(console)
    logger.propagate = False
    logger.setLevel(logging.INFO)


_setup_logger()

if os.environ.get("MINIBATCHLIB_LOG_DEBUG", None) == "1":
    enable_verbose_logging()
