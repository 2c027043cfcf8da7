import logging
import sys
from datetime import datetime
from pathlib import Path

CONSOLE_FORMAT = '%(asctime)s %(levelname)-7s [%(name)s] %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)-7s [%(name)s] %(filename)s:%(lineno)d %(message)s'

# HTTP client internals log every design download at INFO
NOISY_LOGGERS = ("httpx", "httpcore")

def log_file_path(log_dir, now=None):
    """Per-process log file under ``log_dir``, created on demand"""
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return directory / f"autogen_{stamp}.log"

def _with_format(handler, log_level, fmt):
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler

def setup_logging(log_level=logging.INFO, log_to_file=True, log_dir="logs"):
    """Send service logs to stdout and, when ``log_to_file`` is set, to a
    timestamped file in ``log_dir``.

    Replaces whatever handlers the root logger had, so calling it twice does
    not duplicate output. Below DEBUG the HTTP client loggers are held at
    WARNING. Returns the root logger.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    root_logger.addHandler(_with_format(logging.StreamHandler(sys.stdout), log_level, CONSOLE_FORMAT))
    if log_to_file:
        file_handler = logging.FileHandler(log_file_path(log_dir))
        root_logger.addHandler(_with_format(file_handler, log_level, FILE_FORMAT))

    client_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

    return root_logger

def get_logger(name):
    return logging.getLogger(name)
