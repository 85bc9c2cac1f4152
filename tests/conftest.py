"""
Shared fixtures: canned HTTP/1.1 responses served by httpcore's mock streams,
and a resolver that never touches the network.
"""

from typing import List

import httpcore
import pytest

from httpstat.models.config import AddressFamily

EXAMPLE_IP = "93.184.216.34"


def http_response(status_line: str, *headers: str, body: bytes = b"") -> List[bytes]:
    """Raw response chunks; every response closes its connection."""
    chunks = [f"HTTP/1.1 {status_line}\r\n".encode()]
    chunks += [f"{h}\r\n".encode() for h in headers]
    if not any(h.lower().startswith("content-length") for h in headers):
        chunks.append(f"Content-Length: {len(body)}\r\n".encode())
    chunks.append(b"Connection: close\r\n")
    chunks.append(b"\r\n")
    if body:
        chunks.append(body)
    return chunks


class ScriptedBackend(httpcore.AsyncNetworkBackend):
    """Serves one canned response per new connection, in order."""

    def __init__(self, *responses: List[bytes]):
        self.responses = list(responses)
        self.connects = []

    async def connect_tcp(
        self, host, port, timeout=None, local_address=None, socket_options=None
    ):
        self.connects.append((host, port))
        return httpcore.AsyncMockStream(list(self.responses.pop(0)))

    async def sleep(self, seconds):
        pass


class FakeResolver:
    """Resolves every host to the same address and records lookups."""

    def __init__(self, addresses=(EXAMPLE_IP,)):
        self.addresses = list(addresses)
        self.calls = []

    async def __call__(self, host: str, port: int, family: AddressFamily) -> List[str]:
        self.calls.append((host, port, family))
        return list(self.addresses)


class FakeClock:
    """Manually advanced clock; steps are binary fractions so ms values are exact."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ok_response():
    return http_response(
        "200 OK",
        "Content-Type: text/plain",
        "Server: mock",
        body=b"Hello, world!",
    )
