import logging
import sys
import structlog

# Analyzed sources can carry credentials in string literals or paths; never log them raw.
SENSITIVE_FIELDS = ['password', 'secret', 'token', 'api_key', 'source_text']

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def resolve_log_level(value):
    """Map a level name (or an int) to a stdlib logging level, defaulting to INFO."""
    if isinstance(value, int):
        return value
    return LEVELS.get(str(value or "").strip().upper(), logging.INFO)


def filter_sensitive_data(logger, log_method, event_dict):
    """
    A structlog processor that masks sensitive keys in the event dictionary.
    """
    for field in SENSITIVE_FIELDS:
        if field in event_dict:
            event_dict[field] = '[FILTERED]'
    return event_dict


def configure_logging(log_level=logging.INFO, stream=None, force_reconfigure=False):
    """Configure structlog-based JSON logging for the analyzer and its CLI."""
    if stream is None:
        stream = sys.stderr

    if not force_reconfigure and getattr(structlog, '_configured', False):
        return

    level = resolve_log_level(log_level)

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=level,
        force=True
    )
    logging.root.setLevel(level)

    processors = [
        structlog.stdlib.filter_by_level,
        # Pool workers bind project_root, backend and path through contextvars
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        filter_sensitive_data,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    structlog._configured = True
