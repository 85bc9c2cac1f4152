"""
Structured event logging for httpstat.

Records are plain stdlib ``logging`` records whose message is an event name
(``request.started``, ``trace.dns_done``, ``tls.cacert_failed``...) and whose
``extra`` carries the request context. Embedding applications may route the
events elsewhere by installing their own factory with :func:`configure_logging`.

    logger = get_httpstat_logger(__name__, url="https://example.com/")
    logger.debug("request.started", method="GET")
"""

from __future__ import annotations

import contextlib
import logging
import time
from typing import Any, Callable, Dict, Iterator, MutableMapping, Optional, TextIO, Tuple

from rich.console import Console
from rich.logging import RichHandler

LoggerFactory = Callable[..., logging.LoggerAdapter]

_logger_factory: Optional[LoggerFactory] = None


class _ContextAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call ``extra`` over the bound context."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


class StatLoggerAdapter:
    """
    Event logger with bound request context.

    Every call takes an event name plus keyword context; the bound context is
    merged underneath it.
    """

    def __init__(self, logger: logging.LoggerAdapter, context: Optional[Dict[str, Any]] = None):
        self._logger = logger
        self._context = dict(context or {})

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def bind(self, **extra: Any) -> "StatLoggerAdapter":
        return StatLoggerAdapter(self._logger, {**self._context, **extra})

    def log(self, level: int, event: str, exc_info: Optional[BaseException] = None, **extra: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, event, extra={**self._context, **extra}, exc_info=exc_info)

    def debug(self, event: str, **extra: Any) -> None:
        self.log(logging.DEBUG, event, **extra)

    def info(self, event: str, **extra: Any) -> None:
        self.log(logging.INFO, event, **extra)

    def warning(self, event: str, **extra: Any) -> None:
        self.log(logging.WARNING, event, **extra)

    def error(self, event: str, exc_info: Optional[BaseException] = None, **extra: Any) -> None:
        self.log(logging.ERROR, event, exc_info=exc_info, **extra)


def configure_logging(logger_factory: Optional[LoggerFactory]) -> None:
    """
    Install a factory ``(name, **context) -> LoggerAdapter`` used by every
    httpstat logger created afterwards. ``None`` restores stdlib logging.
    """
    global _logger_factory
    _logger_factory = logger_factory


def get_httpstat_logger(
    name: str,
    url: Optional[str] = None,
    method: Optional[str] = None,
    **extra_context: Any
) -> StatLoggerAdapter:
    """
    Logger for module ``name`` with ``url``/``method`` bound when given.
    """
    context = {
        key: value
        for key, value in (("url", url), ("method", method))
        if value is not None
    }
    context.update(extra_context)

    if _logger_factory is not None:
        adapter = _logger_factory(name, **context)
    else:
        adapter = _ContextAdapter(logging.getLogger(name), {})
    return StatLoggerAdapter(adapter, context)


@contextlib.contextmanager
def log_timing(
    logger: StatLoggerAdapter,
    event_prefix: str,
    failure_level: int = logging.ERROR,
    **context: Any
) -> Iterator[None]:
    """
    Log ``<prefix>.started`` and ``<prefix>.completed`` (or ``.failed`` at
    ``failure_level``) around a block, with the elapsed milliseconds.

        with log_timing(logger, "body.save", path="out.bin"):
            ...
    """
    started = time.perf_counter()
    logger.debug(f"{event_prefix}.started", **context)
    try:
        yield
    except BaseException as exc:
        elapsed = round((time.perf_counter() - started) * 1000, 2)
        logger.log(failure_level, f"{event_prefix}.failed", exc_info=exc, duration_ms=elapsed, **context)
        raise
    elapsed = round((time.perf_counter() - started) * 1000, 2)
    logger.debug(f"{event_prefix}.completed", duration_ms=elapsed, **context)


def log_exception(
    logger: StatLoggerAdapter,
    exc: BaseException,
    event: str,
    level: int = logging.ERROR,
    **context: Any
) -> None:
    """Log ``exc`` under ``event`` with its class name and message as context."""
    logger.log(
        level,
        event,
        exc_info=exc,
        error_type=type(exc).__name__,
        error_message=str(exc),
        **context
    )


def log_redirect(
    logger: StatLoggerAdapter,
    from_url: str,
    to_url: str,
    status_code: int,
    redirect_count: int,
    **context: Any
) -> None:
    """Log one followed redirect as ``request.redirect``."""
    logger.info(
        "request.redirect",
        from_url=from_url,
        to_url=to_url,
        status_code=status_code,
        redirect_count=redirect_count,
        **context
    )


def configure_cli_logging(debug: bool = False, stream: Optional[TextIO] = None) -> Console:
    """
    Route log records to a rich handler on stderr.

    Warnings (such as an unreadable CA bundle) are always shown; ``debug``
    adds the per-request trace events.

    Returns:
        The stderr console, for reporting fatal errors
    """
    console = Console(stderr=stream is None, file=stream, highlight=False)
    handler = RichHandler(
        console=console,
        show_time=debug,
        show_path=debug,
    )
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    return console
