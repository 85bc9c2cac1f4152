from .logging import (
    StatLoggerAdapter,
    configure_logging,
    get_httpstat_logger,
    log_exception,
    log_redirect,
    log_timing,
    configure_cli_logging,
)

__all__ = [
    "StatLoggerAdapter",
    "configure_logging",
    "get_httpstat_logger",
    "log_exception",
    "log_redirect",
    "log_timing",
    "configure_cli_logging",
]
