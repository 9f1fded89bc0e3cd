import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "m4v_converter"

_formatter = logging.Formatter(
    '[%(asctime)s] [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)


def setup_logger(name=LOGGER_NAME, level=logging.INFO):
    """
    Returns the shared logger, attaching a console handler on first use.
    """
    logger = logging.getLogger(name)

    # Prevent adding handlers multiple times
    if logger.hasHandlers():
        return logger

    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_formatter)
    logger.addHandler(console_handler)

    return logger


def add_file_handler(log_file: str, name=LOGGER_NAME) -> logging.Logger:
    """
    Mirrors the logger to a rotating file once the log location is known.
    """
    logger = setup_logger(name)
    target = os.path.abspath(log_file)
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == target:
            return logger

    log_dir = os.path.dirname(target)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    file_handler = RotatingFileHandler(
        target, maxBytes=10*1024*1024, backupCount=5, encoding='utf-8'
    )
    file_handler.setFormatter(_formatter)
    logger.addHandler(file_handler)
    return logger


def redirect_console(stream, name=LOGGER_NAME) -> logging.Logger:
    """
    Points the console handler at another stream, e.g. stderr while stdout carries command dumps.
    """
    logger = setup_logger(name)
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setStream(stream)
    return logger
