"""
Structured logging configuration
"""
import logging
import sys

import structlog

from app.config import LOG_LEVEL

# Phrases and model errors can be arbitrarily long; keep log lines bounded.
MAX_FIELD_CHARS = 300


def truncate_long_fields(_, __, event_dict):
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str) and len(value) > MAX_FIELD_CHARS:
            event_dict[key] = value[:MAX_FIELD_CHARS] + "..."
    return event_dict


def configure_logging(level=None):
    """JSON lines on stdout through the stdlib root logger"""
    level = level or getattr(logging, LOG_LEVEL, logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            truncate_long_fields,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for noisy in ("sqlalchemy", "openai", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str = None):
    return structlog.get_logger(name)


def log_api_request(request, response=None, duration=None, error=None):
    """One event per request: completed, failed, or started when neither is given"""
    logger = get_logger("api")
    fields = {
        "method": request.method,
        "path": request.url.path,
        "client_ip": request.client.host if request.client else "unknown",
    }

    if response is not None:
        logger.info("api_request_completed", status_code=response.status_code, duration_ms=_ms(duration), **fields)
    elif error is not None:
        logger.error("api_request_failed", error=str(error), error_type=type(error).__name__,
                     duration_ms=_ms(duration), **fields)
    else:
        logger.info("api_request_started", user_agent=request.headers.get("user-agent", "unknown"), **fields)


def _ms(duration):
    return round(duration * 1000, 1) if duration is not None else None
