from __future__ import annotations
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Mapping, Optional

import httpx

from ..constants import USER_AGENT
from ..exceptions import (
    StatError,
    TimeoutError as StatTimeoutError,
    DNSResolutionError,
    TLSError,
    classify_transport_error,
)
from ..models.config import StatSettings
from ..models.timing import Phase
from ..observability.logging import get_httpstat_logger, log_exception
from ..tracing.backend import TracingBackend
from ..tracing.collector import TraceCollector
from ..transport import TransportConfig, build_transport_config, create_client


class BaseClient(ABC):
    """
    Abstract base class for timed HTTP clients.

    Provides shared functionality:
      - one-time transport configuration (TLS, address family, HTTP/2, proxies)
      - AsyncClient lifecycle
      - the overall per-exchange deadline
      - translation of transport failures into StatError subclasses

    Subclasses implement run() with their own request/response handling.
    """

    def __init__(
        self,
        settings: Optional[StatSettings] = None,
        backend: Optional[TracingBackend] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.settings = settings or StatSettings()
        self._backend = backend
        self._environ = environ
        self._config: Optional[TransportConfig] = None
        self._client: Optional[httpx.AsyncClient] = None
        self._logger = self.settings.logger or get_httpstat_logger(__name__)

    async def __aenter__(self) -> "BaseClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def config(self) -> Optional[TransportConfig]:
        return self._config

    def _ensure_client(self, scheme: str) -> httpx.AsyncClient:
        """Configure the transport for ``scheme`` on first use; later calls reuse it."""
        if self._client is None:
            self._config = build_transport_config(
                self.settings,
                scheme,
                backend=self._backend,
                environ=self._environ,
                logger=self._logger,
            )
            self._client = create_client(self._config)
            self._client.headers["User-Agent"] = USER_AGENT
            self._logger.debug(
                "transport.configured",
                scheme=scheme,
                http2=self._config.http2,
                address_family=self.settings.address_family.value,
                proxies=sorted(self._config.proxies),
            )
        return self._client

    @abstractmethod
    async def run(self, url):
        """
        Abstract method for running requests against ``url``.
        Must be implemented by subclasses.
        """
        raise NotImplementedError

    async def _with_deadline(self, coro, url: str, collector: TraceCollector):
        """
        Await ``coro`` under the max_time deadline, translating failures.

        Raises:
            TimeoutError: when max_time expires
            NetworkError: for any transport failure
        """
        max_time = self.settings.max_time
        try:
            if max_time:
                return await asyncio.wait_for(coro, timeout=max_time)
            return await coro
        except StatError:
            raise
        except asyncio.TimeoutError as exc:
            raise StatTimeoutError(
                message=f"request exceeded maximum time of {max_time}s",
                url=url,
                timeout_type="total",
                timeout_seconds=max_time,
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            error = self._classify(exc, url, collector.phase)
            # The CLI reports the error itself; the traceback is for --debug only.
            log_exception(
                self._logger, error, "request.failed", logging.DEBUG, phase=collector.phase.value
            )
            raise error from exc

    @staticmethod
    def _classify(exc: Exception, url: str, phase: Phase) -> StatError:
        """Use the phase the exchange failed in to pick the most precise error."""
        if isinstance(exc, httpx.ConnectError):
            if phase is Phase.RESOLVING:
                return DNSResolutionError(
                    message=f"DNS resolution failed: {exc}",
                    url=url,
                    hostname=httpx.URL(url).host,
                    cause=exc,
                )
            if phase is Phase.TLS_HANDSHAKE:
                return TLSError(message=f"TLS handshake failed: {exc}", url=url, cause=exc)
        return classify_transport_error(exc, url)
