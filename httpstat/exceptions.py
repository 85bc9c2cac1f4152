"""
Exception hierarchy for httpstat.

Every failure the tool can hit is represented here so that the CLI can
report it in one place. Network and protocol failures are never retried:
a diagnostic run aborts on the first one.

Exception Hierarchy:
    StatError (base)
    ├── ValidationError
    │   ├── InvalidURLError
    │   ├── InvalidSettingsError
    │   ├── InvalidHeaderError
    │   └── BodyFileError
    ├── CredentialError
    ├── TransportConfigError
    ├── NetworkError
    │   ├── ConnectionError
    │   ├── TimeoutError
    │   ├── DNSResolutionError
    │   ├── TLSError
    │   └── ResponseReadError
    ├── OutputError
    ├── RedirectError
    │   └── TooManyRedirectsError
    └── TemplateError

Usage:
    from httpstat.exceptions import StatError, TooManyRedirectsError

    try:
        await client.run(url)
    except TooManyRedirectsError as e:
        print(f"gave up after {e.max_redirects} redirects")
"""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import httpx

__all__ = [
    # Base exception
    "StatError",
    # Validation errors
    "ValidationError",
    "InvalidURLError",
    "InvalidSettingsError",
    "InvalidHeaderError",
    "BodyFileError",
    # Setup errors
    "CredentialError",
    "TransportConfigError",
    # Network errors
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "DNSResolutionError",
    "TLSError",
    "ResponseReadError",
    # Output errors
    "OutputError",
    # Redirect errors
    "RedirectError",
    "TooManyRedirectsError",
    # Rendering errors
    "TemplateError",
    # Utilities
    "classify_transport_error",
]


# ============================================================================
# Base Exception
# ============================================================================


@dataclass(slots=True)
class StatError(Exception):
    """
    Base exception for all httpstat failures.

    Carries the URL being visited, the causal exception and free-form context.
    """

    message: str
    url: Optional[str] = None
    cause: Optional[BaseException] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)
        if self.cause is not None:
            self.__cause__ = self.cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.url:
            parts.append(f"url={self.url}")
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"context=({ctx_str})")
        return " | ".join(parts)


# ============================================================================
# Validation Errors
# ============================================================================


@dataclass(slots=True)
class ValidationError(StatError):
    """Base class for configuration problems detected before any network I/O."""
    pass


@dataclass(slots=True)
class InvalidURLError(ValidationError):
    """Raised when the target URL is empty or cannot be parsed."""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"could not parse url {self.url!r}"
        StatError.__post_init__(self)


@dataclass(slots=True)
class InvalidSettingsError(ValidationError):
    """Raised when StatSettings holds conflicting or invalid options."""

    setting_name: Optional[str] = None
    setting_value: Optional[Any] = None

    def __post_init__(self) -> None:
        if not self.message and self.setting_name:
            self.message = f"Invalid setting {self.setting_name}={self.setting_value!r}"
        StatError.__post_init__(self)


@dataclass(slots=True)
class InvalidHeaderError(ValidationError):
    """Raised for a -H argument without a ':' separator."""

    header: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Header '{self.header}' has invalid format, missing ':'"
        StatError.__post_init__(self)


@dataclass(slots=True)
class BodyFileError(ValidationError):
    """Raised when an @file request body cannot be opened."""

    filename: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"failed to open data file {self.filename}"
        StatError.__post_init__(self)


# ============================================================================
# Setup Errors
# ============================================================================


@dataclass(slots=True)
class CredentialError(StatError):
    """
    Raised when the client certificate/key pair cannot be loaded.

    The PEM file must contain both the certificate and its private key.
    """

    cert_file: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"unable to load client cert and key pair from {self.cert_file}"
        StatError.__post_init__(self)


@dataclass(slots=True)
class TransportConfigError(StatError):
    """Raised when the HTTP client cannot be configured (e.g. HTTP/2 unavailable)."""
    pass


# ============================================================================
# Network Errors
# ============================================================================


@dataclass(slots=True)
class NetworkError(StatError):
    """Base class for network-level failures (DNS, connect, TLS, timeouts, reads)."""
    pass


@dataclass(slots=True)
class ConnectionError(NetworkError):
    """
    Raised when a TCP connection cannot be established.

    Common causes: host unreachable, connection refused, network down.
    """

    host: Optional[str] = None
    port: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"unable to connect to host {self.host}:{self.port}"
        StatError.__post_init__(self)


@dataclass(slots=True)
class TimeoutError(NetworkError):
    """
    Raised when the exchange exceeds a timeout.

    ``timeout_type`` is "total" for the -m deadline, otherwise the httpx phase.
    """

    timeout_type: Optional[str] = None  # "total", "connect", "read", "write", "pool"
    timeout_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Request timed out ({self.timeout_type}: {self.timeout_seconds}s)"
            )
        StatError.__post_init__(self)


@dataclass(slots=True)
class DNSResolutionError(NetworkError):
    """Raised when the hostname cannot be resolved to an address."""

    hostname: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"DNS resolution failed for {self.hostname}"
        StatError.__post_init__(self)


@dataclass(slots=True)
class TLSError(NetworkError):
    """Raised when the TLS handshake fails (bad certificate, protocol mismatch)."""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = "TLS handshake failed"
        StatError.__post_init__(self)


@dataclass(slots=True)
class ResponseReadError(NetworkError):
    """Raised when the response cannot be read to completion."""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = "failed to read response"
        StatError.__post_init__(self)


# ============================================================================
# Output Errors
# ============================================================================


@dataclass(slots=True)
class OutputError(StatError):
    """Raised when the response body cannot be saved to disk."""

    filename: Optional[str] = None


# ============================================================================
# Redirect Errors
# ============================================================================


@dataclass(slots=True)
class RedirectError(StatError):
    """Base class for redirect-related failures."""

    redirect_chain: list[str] = field(default_factory=list)


@dataclass(slots=True)
class TooManyRedirectsError(RedirectError):
    """Raised when following one more redirect would pass the ceiling."""

    max_redirects: int = 0

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"maximum number of redirects ({self.max_redirects}) followed"
        StatError.__post_init__(self)


# ============================================================================
# Rendering Errors
# ============================================================================


@dataclass(slots=True)
class TemplateError(StatError):
    """Raised for an unknown field name or direction in a timing template."""

    variable: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"invalid template variable: {self.variable}"
        StatError.__post_init__(self)


# ============================================================================
# Utility Functions
# ============================================================================


def _caused_by(exc: BaseException, kind: type) -> bool:
    seen = set()
    while exc is not None and id(exc) not in seen:
        if isinstance(exc, kind):
            return True
        seen.add(id(exc))
        exc = exc.__cause__ or exc.__context__
    return False


def _is_dns_failure(exc: BaseException) -> bool:
    text = str(exc)
    return (
        "Name or service not known" in text
        or "getaddrinfo failed" in text
        or "nodename nor servname" in text
        or "Temporary failure in name resolution" in text
    )


def classify_transport_error(exc: BaseException, url: str) -> NetworkError:
    """
    Translate an httpx/httpcore exception into a NetworkError subclass.

    Args:
        exc: Exception raised while sending the request or reading the body
        url: URL of the exchange that failed

    Returns:
        Specific NetworkError instance with ``exc`` as its cause

    Examples:
        >>> classify_transport_error(httpx.ConnectTimeout("timed out"), "https://example.com")
        TimeoutError(timeout_type='connect', ...)
    """
    if isinstance(exc, NetworkError):
        return exc

    if isinstance(exc, httpx.TimeoutException):
        timeout_type = "unknown"
        if isinstance(exc, httpx.ConnectTimeout):
            timeout_type = "connect"
        elif isinstance(exc, httpx.ReadTimeout):
            timeout_type = "read"
        elif isinstance(exc, httpx.WriteTimeout):
            timeout_type = "write"
        elif isinstance(exc, httpx.PoolTimeout):
            timeout_type = "pool"
        return TimeoutError(
            message=f"request timed out ({timeout_type}): {exc}",
            url=url,
            timeout_type=timeout_type,
            cause=exc,
        )

    if isinstance(exc, httpx.ConnectError):
        parsed_url = httpx.URL(url)
        if _is_dns_failure(exc):
            return DNSResolutionError(
                message=f"DNS resolution failed: {exc}",
                url=url,
                hostname=parsed_url.host,
                cause=exc,
            )
        if _caused_by(exc, ssl.SSLError):
            return TLSError(message=f"TLS handshake failed: {exc}", url=url, cause=exc)
        return ConnectionError(
            message=f"unable to connect to host {parsed_url.host}: {exc}",
            url=url,
            host=parsed_url.host,
            port=parsed_url.port,
            cause=exc,
        )

    if isinstance(exc, ssl.SSLError):
        return TLSError(message=f"TLS handshake failed: {exc}", url=url, cause=exc)

    if isinstance(exc, (httpx.ReadError, httpx.RemoteProtocolError, httpx.DecodingError)):
        return ResponseReadError(message=f"failed to read response: {exc}", url=url, cause=exc)

    return NetworkError(message=f"failed to read response: {exc}", url=url, cause=exc)
