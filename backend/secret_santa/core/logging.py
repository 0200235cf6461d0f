"""Structured logging for the gift-exchange core.

structlog renders both its own events and stdlib records (JSON in production,
ConsoleRenderer in dev). Whatever is bound with bind_exchange_context() is
merged into every entry logged inside the block. Receiver ids are scrubbed
before rendering so a misplaced log call cannot reveal a draw.
"""

import logging
import logging.config
from contextlib import contextmanager
from typing import IO

import structlog

from secret_santa.core.config import Settings

_REDACTED_KEYS = frozenset({"receiver_id", "receiverId", "assignments"})


def redact_assignment_fields(logger, method, event_dict):
    """Mask keys that would expose who draws whom."""
    for key in _REDACTED_KEYS & event_dict.keys():
        event_dict[key] = "[redacted]"
    return event_dict


def configure_structlog(log_level: str = "INFO", json_logs: bool = True, stream: IO[str] | None = None) -> None:
    """Install the structlog processor chain and the stdlib bridge.

    Must run before the first log call: loggers cache their processor chain.

    Args:
        log_level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
        json_logs: JSON lines when True, colored console output when False
        stream: Where rendered lines go (defaults to stdout)
    """
    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_assignment_fields,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
                "foreign_pre_chain": pre_chain,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": stream if stream is not None else "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["stdout"], "level": log_level},
    })

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings: Settings) -> None:
    configure_structlog(log_level=settings.log_level, json_logs=settings.json_logs)


@contextmanager
def bind_exchange_context(exchange_id: str, **extra):
    """Attach exchange_id (and any extra keys) to every log entry in the block."""
    with structlog.contextvars.bound_contextvars(exchange_id=exchange_id, **extra):
        yield
