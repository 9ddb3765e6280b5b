import logging
import sys

import structlog


def configure_logging_early():
    """Configures standard Python logging module.

    Log lines of libraries using logging.getLogger() are dropped until this is called.
    """
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s logger=%(name)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _stderr_logger_factory(*args):
    # Looks up sys.stderr on every call so redirected streams are honored.
    return structlog.PrintLogger(file=sys.stderr)


def configure_development_mode_logging(level: int = logging.INFO):
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog_suppressor,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(),
    ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger_factory,
    )


def configure_production_mode_logging(level: int = logging.INFO):
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog_suppressor,
        structlog.processors.add_log_level,
        structlog.dev.set_exc_info,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.processors.JSONRenderer(),
    ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger_factory,
    )


_suppress_logging = False


def structlog_suppressor(logger, name, event_dict):
    global _suppress_logging
    if _suppress_logging:
        raise structlog.DropEvent
    else:
        return event_dict


def suppress():
    global _suppress_logging
    _suppress_logging = True
    logging.getLogger().setLevel(logging.CRITICAL)
