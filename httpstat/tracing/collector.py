"""
Per-exchange trace collector.

A TraceCollector turns the lifecycle notifications of one HTTP exchange into
a :class:`~httpstat.models.timing.Timing`. Two sources feed it:

- :class:`~httpstat.tracing.backend.TracingBackend` reports name resolution
  and TCP connect attempts, which httpcore does not expose as trace events;
- httpcore's ``trace`` request extension reports the TLS handshake, the moment
  the request is written on a ready connection, and the response headers.

The controller marks the start of connection acquisition and the end of the
body read itself.

Usage:
    collector = TraceCollector()
    request.extensions["trace"] = collector
    collector.acquire_started()
    with bind_collector(collector):
        response = await client.send(request)
    timing = collector.finish()
"""

from __future__ import annotations

import contextlib
import time
from contextvars import ContextVar
from typing import Any, Callable, Dict, Iterator, Optional, Sequence

from ..exceptions import ConnectionError as StatConnectionError
from ..models.timing import Phase, Timing
from ..observability.logging import StatLoggerAdapter, get_httpstat_logger


# httpcore trace event -> collector method
TRACE_EVENTS: Dict[str, str] = {
    "connection.start_tls.started": "tls_started",
    "connection.start_tls.complete": "tls_done",
    "proxy.start_tls.started": "tls_started",
    "proxy.start_tls.complete": "tls_done",
    "http11.send_request_headers.started": "connection_obtained",
    "http2.send_request_headers.started": "connection_obtained",
    "http11.receive_response_headers.complete": "first_byte",
    "http2.receive_response_headers.complete": "first_byte",
}

# Collector bound to the exchange currently in flight; read by TracingBackend.
current_collector: ContextVar[Optional["TraceCollector"]] = ContextVar(
    "httpstat_current_collector", default=None
)


@contextlib.contextmanager
def bind_collector(collector: "TraceCollector") -> Iterator["TraceCollector"]:
    """Route backend DNS/connect events to ``collector`` for the enclosed block."""
    token = current_collector.set(collector)
    try:
        yield collector
    finally:
        current_collector.reset(token)


def format_address(host: str, port: int) -> str:
    """``host:port``, with IPv6 literals bracketed."""
    if ":" in host and not host.startswith("["):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class TraceCollector:
    """
    Records the phase boundaries of exactly one exchange.

    Every timing field is written at most once; fields for phases that never
    happen stay at 0. Each duration is measured from its own start marker
    rather than derived from the cumulative offsets, so overlapping phases
    do not skew one another.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.perf_counter,
        logger: Optional[StatLoggerAdapter] = None,
    ):
        self._clock = clock
        self._logger = logger or get_httpstat_logger(__name__)
        self._values: Dict[str, int] = {}
        self.phase = Phase.IDLE
        self.address = ""

        self._t0: Optional[float] = None
        self._t_dns_start: Optional[float] = None
        self._t_connect_start: Optional[float] = None
        self._t_tls_start: Optional[float] = None
        self._t_connected: Optional[float] = None
        self._t_ttfb: Optional[float] = None
        self._timing: Optional[Timing] = None

    def _ms_since(self, start: float) -> int:
        return max(0, int((self._clock() - start) * 1000))

    def _set(self, name: str, start: Optional[float]) -> None:
        if start is None or name in self._values:
            return
        self._values[name] = self._ms_since(start)

    @property
    def finished(self) -> bool:
        return self._timing is not None

    # -- lifecycle events, in the order they can fire ----------------------

    def acquire_started(self) -> None:
        """The request starts waiting for a connection."""
        if self._t0 is None:
            self._t0 = self._clock()

    def dns_started(self, host: str) -> None:
        if self._t_dns_start is None:
            self._t_dns_start = self._clock()
            self.phase = Phase.RESOLVING
            self._logger.debug("trace.dns_started", host=host)

    def dns_done(self, addresses: Sequence[str] = ()) -> None:
        self._set("dns", self._t_dns_start)
        self._set("lookup", self._t0)
        self._logger.debug("trace.dns_done", addresses=list(addresses))

    def connect_started(self, address: str) -> None:
        # Several candidate addresses may be tried; only the first attempt counts.
        if self._t_connect_start is None:
            self._t_connect_start = self._clock()
            self.phase = Phase.CONNECTING
            self._logger.debug("trace.connect_started", address=address)

    def connect_done(self, address: str, error: Optional[BaseException] = None) -> None:
        """
        A connect attempt finished.

        Raises:
            ConnectionError: if the attempt failed; the exchange is aborted.
        """
        if error is not None:
            host, _, port = address.rpartition(":")
            raise StatConnectionError(
                message=f"unable to connect to host {address}: {error}",
                host=host.strip("[]") or None,
                port=int(port) if port.isdigit() else None,
                cause=error,
            )
        self._set("tcp", self._t_connect_start)
        self._set("connect", self._t0)
        if not self.address:
            self.address = address
        self._logger.debug("trace.connect_done", address=address)

    def tls_started(self) -> None:
        if self._t_tls_start is None:
            self._t_tls_start = self._clock()
            self.phase = Phase.TLS_HANDSHAKE

    def tls_done(self) -> None:
        self._set("tls", self._t_tls_start)

    def connection_obtained(self) -> None:
        """The connection is ready and the request is about to be written."""
        if self._t_connected is None:
            self._t_connected = self._clock()
            self._set("pre_transfer", self._t0)
            self.phase = Phase.TRANSFERRING

    def first_byte(self) -> None:
        if self._t_ttfb is None:
            self._t_ttfb = self._clock()
            self._set("server", self._t_connected)
            self._set("start_transfer", self._t0)

    def finish(self) -> Timing:
        """Close the exchange after the body was consumed and freeze the timing."""
        if self._timing is None:
            self._set("transfer", self._t_ttfb)
            self._set("total", self._t0)
            self._timing = Timing(**self._values)
            self.phase = Phase.COMPLETE
        return self._timing

    def timing(self) -> Timing:
        """Timing recorded so far (final once :meth:`finish` ran)."""
        if self._timing is not None:
            return self._timing
        return Timing(**self._values)

    # -- httpcore ``trace`` extension --------------------------------------

    async def __call__(self, event_name: str, info: Dict[str, Any]) -> None:
        method = TRACE_EVENTS.get(event_name)
        if method is not None:
            getattr(self, method)()
