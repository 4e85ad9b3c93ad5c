"""
Structured logging: structlog + contextvars

- development: coloured console output
- production: JSON lines
- bound context (trace_id on the relay, request_id / tool on the bridge) is
  merged into every event
- token-bearing fields are masked before rendering
"""

import logging
import sys

import structlog

_SECRET_KEYS = frozenset({"token", "access_token", "refresh_token", "code_verifier", "authorization"})


def _mask_secrets(logger, method_name: str, event_dict: dict) -> dict:
    for key in event_dict.keys() & _SECRET_KEYS:
        value = str(event_dict[key] or "")
        event_dict[key] = f"{value[:4]}***" if value else value
    return event_dict


def setup_logging(env: str = "development", level: str | int = logging.INFO) -> None:
    """Configure structlog once per process"""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _mask_secrets,
        structlog.processors.StackInfoRenderer(),
    ]
    if env == "production":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    # httpx logs every request line at INFO, query strings included
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
