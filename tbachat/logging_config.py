"""Logging setup for the agent process.

Logs go to stderr. The configured private keys are redacted before a
record is written.
"""

import logging
import re
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class _SecretScrubFilter(logging.Filter):
    """Redact private keys from log messages."""

    def __init__(self, secrets: tuple[str, ...] = ()):
        super().__init__()
        self._secrets = tuple(s.lower().removeprefix("0x") for s in secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        scrubbed = message
        for secret in self._secrets:
            scrubbed = re.sub(re.escape(secret), "[REDACTED]", scrubbed, flags=re.IGNORECASE)
        if scrubbed != message:
            record.msg = scrubbed
            record.args = None
        return True


def setup_logging(level: str | int = "INFO", secrets: tuple[str, ...] = ()) -> logging.Logger:
    """Configure the ``tbachat`` logger once and return it."""
    logger = logging.getLogger("tbachat")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    for handler in logger.handlers:
        handler.filters = [f for f in handler.filters if not isinstance(f, _SecretScrubFilter)]
        handler.addFilter(_SecretScrubFilter(secrets))
    return logger
