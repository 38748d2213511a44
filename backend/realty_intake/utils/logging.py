# /realty_intake/utils/logging.py

import logging
import sys
import structlog
from realty_intake.config.settings import settings

# Routes log through structlog, services through the stdlib; both end up on
# one stdout handler rendered as JSON outside development.

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")

SHARED_PROCESSORS = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _renderer():
    if settings.environment == "development":
        return structlog.dev.ConsoleRenderer()
    # Prompts and answers are Spanish; keep accents readable in the JSON lines
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def setup_logging():
    """Configures structlog on top of the root logger. Safe to call more than once."""
    structlog.configure(
        processors=SHARED_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=_renderer(), foreign_pre_chain=SHARED_PROCESSORS)
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
