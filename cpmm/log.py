"""structlog configuration for scripts and embedding applications."""

import logging

import structlog


def configure_logging(verbose: bool = False, json: bool = False) -> None:
    """Configure structlog for console or JSON output.

    Args:
        verbose: Emit debug events (every ledger operation) instead of info and above
        json: Render one JSON object per line instead of the console format
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )
