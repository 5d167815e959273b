"""Logging configuration for the trackcal logger tree."""

import logging

LOGGER_NAME = "trackcal"


class ResolutionFormatter(logging.Formatter):
    """Append resolution failure fields when a record carries them."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        cause = getattr(record, "cause", None)
        if cause is None:
            return message
        retryable = getattr(record, "retryable", False)
        return f"{message} [cause={cause} retryable={str(retryable).lower()}]"


def configure_logging(level: str = "INFO") -> None:
    """Attach one stream handler to the trackcal logger at the given level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        ResolutionFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
