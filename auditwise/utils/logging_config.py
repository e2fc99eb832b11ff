"""
Logging Config
==============
Coloured console output plus a daily file under logs/.

Gemini keys travel in the request query string (?key=...), and httpx logs
every request URL at INFO, so all handlers carry a filter that masks them.
"""
import logging
import re
import sys
import os
from datetime import datetime

_SECRET_PARAM = re.compile(r"([?&]key=)[^&\s'\"]+")


def redact_secrets(text: str) -> str:
    return _SECRET_PARAM.sub(r"\1***", text)


class RedactSecretsFilter(logging.Filter):
    """Rewrite the rendered message with API keys masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours each record by level."""

    cyan = "\x1b[36m"
    green = "\x1b[32m"
    yellow = "\x1b[33m"
    red = "\x1b[31m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"

    format_str = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"

    FORMATS = {
        logging.DEBUG: cyan + format_str + reset,
        logging.INFO: green + format_str + reset,
        logging.WARNING: yellow + format_str + reset,
        logging.ERROR: red + format_str + reset,
        logging.CRITICAL: bold_red + format_str + reset
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno)
        if not log_fmt:
            log_fmt = self.format_str
        formatter = logging.Formatter(log_fmt, datefmt="%Y-%m-%d %H:%M:%S")
        return formatter.format(record)

def setup_logging(level=logging.INFO, log_dir: str = "logs"):
    """Configure console + daily file logging for the service and uvicorn."""
    root_logger = logging.getLogger()

    # Drop handlers from earlier calls (uvicorn reload re-imports main)
    if root_logger.handlers:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

    root_logger.setLevel(level)
    redactor = RedactSecretsFilter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter())
    console_handler.addFilter(redactor)
    root_logger.addHandler(console_handler)

    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    file_handler = logging.FileHandler(
        os.path.join(log_dir, f"auditwise_{datetime.now().strftime('%Y%m%d')}.log"),
        encoding="utf-8",
    )
    file_fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_fmt)
    file_handler.addFilter(redactor)
    root_logger.addHandler(file_handler)

    for logger_name in ["auditwise", "uvicorn", "uvicorn.error", "uvicorn.access", "httpx", "main"]:
        l = logging.getLogger(logger_name)
        l.setLevel(level)
        l.propagate = True

    root_logger.info("Logging initialized (console + %s).", log_dir)
