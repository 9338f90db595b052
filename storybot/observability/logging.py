from __future__ import annotations
import logging, sys
import structlog

# Keys whose values never reach the log output.
SECRET_KEYS = frozenset({"token", "secret_token", "parameters"})

def redact_secrets(logger, method_name, event_dict):
    for key in SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict

def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, stream=sys.stdout, format="%(message)s")

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]
    processors.append(structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

def get_logger(name: str = "storybot"):
    return structlog.get_logger(name)

def bind_request(channel: str | None, request_id: str | None = None):
    """Attach the channel and a request id to every log line of this turn."""
    structlog.contextvars.bind_contextvars(channel=channel or "-", request_id=request_id or "-")

def clear_request():
    structlog.contextvars.unbind_contextvars("channel", "request_id")
