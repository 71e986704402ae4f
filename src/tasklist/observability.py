"""structlog setup.

Learn: Every module does `logger = structlog.get_logger()` and logs dotted
event names with keyword context (`logger.info("todo.created", todo_id=3)`).
merge_contextvars pulls in the request_id bound by RequestIdMiddleware, so
all lines from one request can be correlated.
"""

import logging

import structlog


def configure_logging(environment: str = "development", debug: bool = False) -> None:
    """Configure structlog processors once at startup."""
    level = logging.DEBUG if debug else logging.INFO
    renderer = (
        structlog.dev.ConsoleRenderer()
        if environment == "development"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
