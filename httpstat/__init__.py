from .constants import VERSION as __version__
from .clients import (
    BaseClient,
    StatClient,
    Exchange,
    RedirectState,
)
from .models import (
    AddressFamily,
    StatSettings,
    Timeouts,
    Report,
    Timing,
)
from .exceptions import (
    # Base exception
    StatError,
    # Validation errors
    ValidationError,
    InvalidURLError,
    InvalidSettingsError,
    InvalidHeaderError,
    BodyFileError,
    # Setup errors
    CredentialError,
    TransportConfigError,
    # Network errors
    NetworkError,
    ConnectionError,
    TimeoutError,
    DNSResolutionError,
    TLSError,
    ResponseReadError,
    # Output errors
    OutputError,
    # Redirect errors
    RedirectError,
    TooManyRedirectsError,
    # Rendering errors
    TemplateError,
)
from .render import ConsoleRenderer, JSONRenderer
from .tracing import TraceCollector, TracingBackend


__all__ = [
    "__version__",

    # Primary client
    "StatClient",

    # Configuration
    "StatSettings",
    "AddressFamily",
    "Timeouts",

    # Result models
    "Exchange",
    "RedirectState",
    "Report",
    "Timing",

    # Base class (for extending)
    "BaseClient",

    # Rendering
    "ConsoleRenderer",
    "JSONRenderer",

    # Tracing
    "TraceCollector",
    "TracingBackend",

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
]
