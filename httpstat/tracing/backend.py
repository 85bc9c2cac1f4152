"""
Network backend that reports name resolution and connect attempts.

httpcore resolves and connects in a single ``connect_tcp`` call. To time the
two separately, TracingBackend resolves the host itself (restricted to the
configured address family) and then connects to the resolved addresses one
by one through the wrapped backend, notifying the collector bound with
:func:`~httpstat.tracing.collector.bind_collector`.
"""

from __future__ import annotations

import ipaddress
import socket
import typing
from typing import Awaitable, Callable, List, Optional

import anyio
import httpcore

from ..models.config import AddressFamily
from .collector import current_collector, format_address

Resolver = Callable[[str, int, AddressFamily], Awaitable[List[str]]]

_SOCKET_FAMILIES = {
    AddressFamily.AUTO: socket.AF_UNSPEC,
    AddressFamily.IPV4: socket.AF_INET,
    AddressFamily.IPV6: socket.AF_INET6,
}


async def resolve_host(host: str, port: int, family: AddressFamily) -> List[str]:
    """Resolve ``host`` to unique IP addresses of ``family``, in resolver order."""
    infos = await anyio.getaddrinfo(
        host, port, family=_SOCKET_FAMILIES[family], type=socket.SOCK_STREAM
    )
    addresses: List[str] = []
    for *_, sockaddr in infos:
        ip = str(sockaddr[0])
        if ip not in addresses:
            addresses.append(ip)
    return addresses


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


class TracingBackend(httpcore.AsyncNetworkBackend):
    """
    httpcore network backend with DNS and connect instrumentation.

    Args:
        family: Address family to restrict resolution to
        inner: Backend used for the actual connections (AnyIO by default)
        resolver: Coroutine ``(host, port, family) -> [ip, ...]``
    """

    def __init__(
        self,
        family: AddressFamily = AddressFamily.AUTO,
        inner: Optional[httpcore.AsyncNetworkBackend] = None,
        resolver: Optional[Resolver] = None,
    ):
        self.family = family
        self._inner = inner or httpcore.AnyIOBackend()
        self._resolver = resolver or resolve_host

    async def _resolve(self, host: str, port: int, timeout: Optional[float]) -> List[str]:
        collector = current_collector.get()
        if _is_ip_literal(host) and self.family is AddressFamily.AUTO:
            return [host.strip("[]")]

        if collector is not None:
            collector.dns_started(host)
        try:
            with anyio.fail_after(timeout):
                addresses = await self._resolver(host, port, self.family)
        except TimeoutError as exc:
            raise httpcore.ConnectTimeout(f"lookup {host}: timed out") from exc
        except OSError as exc:
            raise httpcore.ConnectError(f"lookup {host}: {exc}") from exc
        if not addresses:
            raise httpcore.ConnectError(f"lookup {host}: no such host")
        if collector is not None:
            collector.dns_done(addresses)
        return addresses

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
        local_address: Optional[str] = None,
        socket_options: typing.Optional[typing.Iterable[typing.Any]] = None,
    ) -> httpcore.AsyncNetworkStream:
        addresses = await self._resolve(host, port, timeout)
        collector = current_collector.get()

        last_exc: Optional[Exception] = None
        for ip in addresses:
            address = format_address(ip, port)
            if collector is not None:
                collector.connect_started(address)
            try:
                stream = await self._inner.connect_tcp(
                    ip,
                    port,
                    timeout=timeout,
                    local_address=local_address,
                    socket_options=socket_options,
                )
            except (httpcore.ConnectError, httpcore.ConnectTimeout) as exc:
                if collector is not None:
                    collector.connect_done(address, error=exc)
                last_exc = exc
                continue
            if collector is not None:
                collector.connect_done(address)
            return stream

        assert last_exc is not None
        raise last_exc

    async def connect_unix_socket(
        self,
        path: str,
        timeout: Optional[float] = None,
        socket_options: typing.Optional[typing.Iterable[typing.Any]] = None,
    ) -> httpcore.AsyncNetworkStream:
        return await self._inner.connect_unix_socket(
            path, timeout=timeout, socket_options=socket_options
        )

    async def sleep(self, seconds: float) -> None:
        await self._inner.sleep(seconds)
