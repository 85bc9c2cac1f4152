from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple, Union

import aiofiles
import httpx

from .base import BaseClient
from .utils import build_headers, parse_url, remote_filename, request_content, server_name
from ..constants import BODY_DISCARDED, BODY_READ
from ..exceptions import OutputError, TooManyRedirectsError
from ..models.config import MAX_REDIRECTS, StatSettings
from ..models.report import Report, collect_headers, format_proto, format_status
from ..observability.logging import log_redirect, log_timing
from ..render.console import ConsoleRenderer, JSONRenderer, ReportRenderer
from ..tracing.backend import TracingBackend
from ..tracing.collector import TraceCollector, bind_collector, format_address


def is_redirect(status_code: int) -> bool:
    return 300 <= status_code < 400


@dataclass
class Exchange:
    """One request/response pair as observed by StatClient."""
    url: httpx.URL
    method: str
    status_code: int
    report: Report
    location: Optional[str] = None
    body_message: str = ""


@dataclass
class RedirectState:
    """
    Redirect bookkeeping for one top-level request.

    ``count`` is the number of redirects followed so far; following one more
    than ``max_redirects`` is refused before the request is sent.
    """
    max_redirects: int = MAX_REDIRECTS
    count: int = 0
    chain: List[str] = field(default_factory=list)
    exchanges: List[Exchange] = field(default_factory=list)

    def advance(self, url: httpx.URL) -> None:
        """
        Record that the redirect to ``url`` is about to be followed.

        Raises:
            TooManyRedirectsError: if this redirect exceeds the ceiling
        """
        self.count += 1
        self.chain.append(str(url))
        if self.count > self.max_redirects:
            raise TooManyRedirectsError(
                message="",
                url=str(url),
                max_redirects=self.max_redirects,
                redirect_chain=list(self.chain),
            )


def _peer_address(response: httpx.Response) -> str:
    """Peer address of the stream that served ``response`` (for reused connections)."""
    stream = response.extensions.get("network_stream")
    get_extra_info = getattr(stream, "get_extra_info", None)
    if not callable(get_extra_info):
        return ""
    addr = get_extra_info("server_addr")
    if isinstance(addr, tuple) and len(addr) >= 2:
        return format_address(str(addr[0]), int(addr[1]))
    return ""


class StatClient(BaseClient):
    """
    Times HTTP exchanges and renders one report per exchange.

    Each top-level request is issued ``num_requests`` times, ``request_delay``
    seconds apart. With ``follow_redirects`` every 3xx response carrying a
    Location is followed, up to ``max_redirects`` per top-level request.
    Requests never run concurrently.

    Example:
        settings = StatSettings(follow_redirects=True, json_output=True)
        async with StatClient(settings) as client:
            chains = await client.run("example.com")
    """

    def __init__(
        self,
        settings: Optional[StatSettings] = None,
        renderer: Optional[ReportRenderer] = None,
        backend: Optional[TracingBackend] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(settings, backend=backend, environ=environ)
        if renderer is None:
            renderer = JSONRenderer() if self.settings.json_output else ConsoleRenderer()
        self.renderer = renderer

    async def run(self, url: Union[str, httpx.URL]) -> List[RedirectState]:
        """
        Issue the request ``num_requests`` times, following redirects if enabled.

        Returns:
            One RedirectState per repetition, holding its exchanges

        Raises:
            ValidationError: for invalid settings, URL or headers (before any I/O)
            StatError: for the first network, output or redirect failure
        """
        self.settings.validate()
        if not isinstance(url, httpx.URL):
            url = parse_url(url)
        build_headers(self.settings.headers)  # reject malformed -H before connecting
        self._ensure_client(url.scheme)

        results: List[RedirectState] = []
        for i in range(self.settings.num_requests):
            if i > 0:
                await asyncio.sleep(self.settings.request_delay)
            results.append(await self.follow(url))
        return results

    async def follow(self, url: httpx.URL) -> RedirectState:
        """Visit ``url`` and then every redirect it leads to, one at a time."""
        state = RedirectState(max_redirects=self.settings.max_redirects)
        target = url
        while True:
            exchange = await self.visit(target)
            state.exchanges.append(exchange)

            if not self.settings.follow_redirects or not is_redirect(exchange.status_code):
                return state
            if not exchange.location:
                # a 3xx without Location has nothing to follow
                return state

            next_url = target.join(exchange.location)
            state.advance(next_url)
            log_redirect(
                self._logger,
                from_url=str(target),
                to_url=str(next_url),
                status_code=exchange.status_code,
                redirect_count=state.count,
            )
            target = next_url

    def build_request(self, url: httpx.URL) -> httpx.Request:
        """Request for ``url`` with the configured method, headers and body."""
        client = self._ensure_client(url.scheme)
        headers, host = build_headers(self.settings.headers)
        extensions = {}
        if host:
            headers.append(("Host", host))
            if url.scheme == "https":
                extensions["sni_hostname"] = server_name(host)
        return client.build_request(
            self.settings.method,
            url,
            headers=headers,
            content=request_content(self.settings.body),
            extensions=extensions,
        )

    async def visit(self, url: httpx.URL) -> Exchange:
        """
        Perform one timed exchange and render its report.

        Raises:
            NetworkError: for any transport failure, or when max_time expires
            OutputError: when the body cannot be saved
        """
        request = self.build_request(url)
        collector = TraceCollector(logger=self._logger)
        request.extensions["trace"] = collector

        self._logger.debug("request.started", url=str(url), method=request.method)
        report, response, body_message = await self._with_deadline(
            self._exchange(request, collector), str(url), collector
        )
        self._logger.debug(
            "request.completed",
            url=str(url),
            status_code=response.status_code,
            total_ms=report.timing.total,
        )

        self.renderer.render(report, url, body_message)
        return Exchange(
            url=url,
            method=request.method,
            status_code=response.status_code,
            report=report,
            location=response.headers.get("Location"),
            body_message=body_message,
        )

    async def _exchange(
        self, request: httpx.Request, collector: TraceCollector
    ) -> Tuple[Report, httpx.Response, str]:
        assert self._client is not None
        collector.acquire_started()
        with bind_collector(collector):
            response = await self._client.send(request, stream=True)
            try:
                body_message = await self._consume_body(request, response)
            finally:
                await response.aclose()

        timing = collector.finish()
        report = Report(
            address=collector.address or _peer_address(response),
            headers=collect_headers(response.headers),
            proto=format_proto(response.http_version),
            status=format_status(response),
            timing=timing,
        )
        return report, response, body_message

    async def _consume_body(self, request: httpx.Request, response: httpx.Response) -> str:
        """
        Drain the body, saving it when -o/-O asked for it.

        Redirect bodies and HEAD responses are left unread.

        Returns:
            Message describing what happened to the body ("" if unread)
        """
        if is_redirect(response.status_code) or request.method == "HEAD":
            return ""

        if not self.settings.saves_body:
            async for _ in response.aiter_raw():
                pass
            return BODY_DISCARDED

        path = self.settings.output_file
        if self.settings.save_output:
            path = remote_filename(response.headers, request.url)
            if path == "/":
                raise OutputError(
                    message="No remote filename; specify output filename with -o to save response body",
                    url=str(request.url),
                )

        try:
            async with aiofiles.open(path, "wb") as f:
                with log_timing(self._logger, "body.save", logging.DEBUG, path=path):
                    async for chunk in response.aiter_bytes():
                        await f.write(chunk)
        except OSError as exc:
            raise OutputError(
                message=f"unable to write file {path}: {exc}",
                url=str(request.url),
                filename=path,
                cause=exc,
            ) from exc
        return BODY_READ
