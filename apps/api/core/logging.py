"""Structured logging with structlog.

JSON lines in production, colorized console in development. The domain
packages only call ``structlog.get_logger()``; this module decides how
their events are rendered. The import pipeline binds ``import_id`` and
``account_id`` through contextvars, so every event of an import carries
them without being passed around.

Usage:
    import structlog
    logger = structlog.get_logger()
    logger.info("import_started", file="statement.csv", bank="HDFC")
"""

import logging
import sys

import structlog

# The Supabase client logs every PostgREST request through these
QUIET_LOGGERS = ("httpx", "httpcore", "hpack")


def setup_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: stdlib level name (DEBUG, INFO, WARNING, ERROR).
        json_output: JSON renderer with tracebacks as dicts when True,
                     console renderer when False.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # force: the app lifespan may run more than once per process
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
