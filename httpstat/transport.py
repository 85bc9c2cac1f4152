"""
Client configuration for a run.

Everything here is built once, before the first request, and performs no
network I/O: the TLS context (skip-verify, client certificate, extra CA
bundle), the tracing network backend (address family), HTTP/2 enablement,
proxy mounts taken from the environment and the per-phase timeouts.
"""

from __future__ import annotations

import os
import ssl
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import httpcore
import httpx

from .exceptions import CredentialError, TransportConfigError
from .models.config import StatSettings
from .observability.logging import StatLoggerAdapter, get_httpstat_logger
from .tracing.backend import TracingBackend


class TracingTransport(httpx.AsyncHTTPTransport):
    """AsyncHTTPTransport whose connections are opened through a TracingBackend."""

    def __init__(self, backend: TracingBackend, **kwargs):
        super().__init__(**kwargs)
        # httpx has no public hook for the network backend; the pool (or proxy
        # pool) only reads it when it opens a new connection. Holds for
        # httpcore 1.x.
        if not hasattr(self._pool, "_network_backend"):
            raise TransportConfigError(
                message=(
                    f"unsupported httpcore {httpcore.__version__}: "
                    f"{type(self._pool).__name__} has no network backend to trace"
                ),
            )
        self._pool._network_backend = backend


@dataclass
class TransportConfig:
    ssl_context: ssl.SSLContext
    backend: TracingBackend
    http2: bool
    timeout: httpx.Timeout
    proxies: Dict[str, Optional[str]] = field(default_factory=dict)  # mount pattern -> proxy URL, None = direct


def build_ssl_context(
    settings: StatSettings,
    logger: Optional[StatLoggerAdapter] = None,
) -> ssl.SSLContext:
    """
    Build the TLS context used for encrypted targets.

    Raises:
        CredentialError: if the client certificate/key pair cannot be loaded
    """
    logger = logger or get_httpstat_logger(__name__)
    ctx = ssl.create_default_context()

    if settings.insecure:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE

    if settings.client_cert:
        try:
            ctx.load_cert_chain(certfile=settings.client_cert)
        except OSError as exc:
            raise CredentialError(
                message=f"unable to load client cert and key pair: {exc}",
                cert_file=settings.client_cert,
                cause=exc,
            ) from exc

    if settings.ca_cert:
        try:
            ctx.load_verify_locations(cafile=settings.ca_cert)
        except (OSError, ValueError) as exc:
            # System trust roots stay in place.
            logger.warning(
                "tls.cacert_failed",
                ca_cert=settings.ca_cert,
                error_message=str(exc),
            )

    return ctx


def _proxy_url(value: str) -> str:
    return value if "://" in value else f"http://{value}"


def _getenv(environ: Mapping[str, str], name: str) -> str:
    return environ.get(name) or environ.get(name.lower()) or ""


def environment_proxies(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Optional[str]]:
    """
    Proxy mounts from HTTP_PROXY, HTTPS_PROXY and NO_PROXY.

    HTTPS_PROXY falls back to HTTP_PROXY. Hosts listed in NO_PROXY are mounted
    to ``None`` so they bypass the proxy.

    >>> environment_proxies({"HTTP_PROXY": "proxy:3128", "NO_PROXY": "localhost"})
    {'http://': 'http://proxy:3128', 'https://': 'http://proxy:3128', 'all://localhost': None}
    """
    environ = os.environ if environ is None else environ
    http_proxy = _getenv(environ, "HTTP_PROXY")
    https_proxy = _getenv(environ, "HTTPS_PROXY") or http_proxy

    mounts: Dict[str, Optional[str]] = {}
    if http_proxy:
        mounts["http://"] = _proxy_url(http_proxy)
    if https_proxy:
        mounts["https://"] = _proxy_url(https_proxy)
    if not mounts:
        return mounts

    for host in _getenv(environ, "NO_PROXY").split(","):
        host = host.strip()
        if not host:
            continue
        if host == "*":
            return {}
        if "://" in host:
            mounts[host] = None
        elif ":" in host and not host.startswith("["):
            mounts[f"all://[{host}]"] = None
        elif host.lower() == "localhost" or host.replace(".", "").isdigit():
            mounts[f"all://{host}"] = None
        else:
            mounts[f"all://*{host.lstrip('.')}"] = None
    return mounts


def build_transport_config(
    settings: StatSettings,
    scheme: str,
    backend: Optional[TracingBackend] = None,
    environ: Optional[Mapping[str, str]] = None,
    logger: Optional[StatLoggerAdapter] = None,
) -> TransportConfig:
    """
    Build the run's transport configuration for a target ``scheme``.

    HTTP/2 is negotiated only for https targets.

    Raises:
        CredentialError: if the client certificate cannot be loaded
    """
    timeouts = settings.timeouts
    return TransportConfig(
        ssl_context=build_ssl_context(settings, logger),
        backend=backend or TracingBackend(family=settings.address_family),
        http2=settings.http2 and scheme == "https",
        timeout=httpx.Timeout(
            connect=timeouts.connect,
            read=timeouts.read,
            write=timeouts.write,
            pool=timeouts.pool,
        ),
        proxies=environment_proxies(environ),
    )


def _make_transport(config: TransportConfig, proxy: Optional[str] = None) -> TracingTransport:
    try:
        return TracingTransport(
            config.backend,
            verify=config.ssl_context,
            http2=config.http2,
            proxy=proxy,
            trust_env=False,
        )
    except ImportError as exc:
        raise TransportConfigError(
            message=f"failed to prepare transport for HTTP/2: {exc}",
            cause=exc,
        ) from exc


def create_client(config: TransportConfig) -> httpx.AsyncClient:
    """
    Create the AsyncClient for a run.

    The client never follows redirects itself; the caller decides.

    Raises:
        TransportConfigError: if HTTP/2 was requested but cannot be enabled
    """
    mounts: Dict[str, Optional[httpx.AsyncBaseTransport]] = {
        pattern: _make_transport(config, proxy) if proxy else None
        for pattern, proxy in config.proxies.items()
    }
    return httpx.AsyncClient(
        transport=_make_transport(config),
        mounts=mounts,
        timeout=config.timeout,
        follow_redirects=False,
        trust_env=False,
    )
