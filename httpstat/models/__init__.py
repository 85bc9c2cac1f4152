from .config import (
    AddressFamily,
    StatSettings,
    Timeouts,
    MAX_REDIRECTS,
)

from .report import (
    Report,
    collect_headers,
    format_proto,
    format_status,
)

from .timing import (
    FIELD_NAMES,
    Phase,
    Timing,
)

__all__ = [
    # Config Models
    "AddressFamily",
    "StatSettings",
    "Timeouts",
    "MAX_REDIRECTS",

    # Result Models
    "Report",
    "collect_headers",
    "format_proto",
    "format_status",

    # Timing
    "FIELD_NAMES",
    "Phase",
    "Timing",
]
