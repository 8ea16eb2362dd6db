"""
Centralized Logging Utility

One cached logger per stockroom module, all writing to the same pair of
handlers: the log file under LOGS_DIR (everything from DEBUG up) and the
console (LOG_CONSOLE_LEVEL and up).

Records pass through a redaction filter before they reach either handler, so
staff and recipient email addresses never land in the logs even when an
exception message from the store or the SMTP server quotes one.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List

from stockroom.config import LOG_CONSOLE_LEVEL, LOG_FILENAME, LOGS_DIR

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(\.[\w-]+)+")

_loggers: Dict[str, logging.Logger] = {}
_handlers: List[logging.Handler] = []
_TRACEBACK_FORMATTER = logging.Formatter()


def _redact(text: str) -> str:
    return _EMAIL_PATTERN.sub("<redacted>", text)


class EmailRedactionFilter(logging.Filter):
    """Replace anything shaped like an email address with <redacted>.

    Covers the message, the formatted traceback and any stack info. The
    traceback is rendered here and cached on ``exc_text`` so handlers never
    format the raw exception themselves.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None

        if record.exc_info:
            record.exc_text = _TRACEBACK_FORMATTER.formatException(record.exc_info)
            record.exc_info = None
        if record.exc_text:
            record.exc_text = _redact(record.exc_text)
        if record.stack_info:
            record.stack_info = _redact(record.stack_info)
        return True


_REDACTION = EmailRedactionFilter()


def _shared_handlers() -> List[logging.Handler]:
    if _handlers:
        return _handlers

    logs_path = Path(LOGS_DIR)
    logs_path.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    file_handler = logging.FileHandler(logs_path / LOG_FILENAME, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, LOG_CONSOLE_LEVEL, logging.INFO))

    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler.addFilter(_REDACTION)
        _handlers.append(handler)
    return _handlers


def get_logger(name: str) -> logging.Logger:
    """
    Get or create the logger for a module.

    Example:
        from stockroom.logger import get_logger
        logger = get_logger(__name__)
        logger.info("Receiving 5 unit(s) of SKU 'flt-oil-300'")
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    # Logger-level filter runs before every handler, including ones added by the host
    if _REDACTION not in logger.filters:
        logger.addFilter(_REDACTION)
    # Skip handler setup if the host application already configured this logger
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
        for handler in _shared_handlers():
            logger.addHandler(handler)

    _loggers[name] = logger
    return logger
