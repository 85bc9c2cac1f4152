from __future__ import annotations
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict


class Phase(str, Enum):
    """Where an exchange currently is, in the order phases can occur."""
    IDLE = "idle"
    RESOLVING = "resolving"
    CONNECTING = "connecting"
    TLS_HANDSHAKE = "tls_handshake"
    TRANSFERRING = "transferring"
    COMPLETE = "complete"


# External field name -> Timing attribute. The external names are used both as
# JSON keys and as template placeholder names.
FIELD_NAMES: Dict[str, str] = {
    "DNS": "dns",
    "TCP": "tcp",
    "TLS": "tls",
    "Server": "server",
    "Transfer": "transfer",
    "Lookup": "lookup",
    "Connect": "connect",
    "PreTransfer": "pre_transfer",
    "StartTransfer": "start_transfer",
    "Total": "total",
}


@dataclass(frozen=True)
class Timing:
    """
    Phase timings of one exchange, in whole milliseconds.

    The first five fields are phase durations. The last five are offsets from
    the moment the request started waiting for a connection, and are
    non-decreasing: lookup <= connect <= pre_transfer <= start_transfer <= total.
    Phases that did not happen (TLS over plain HTTP, DNS/TCP/TLS on a reused
    connection) stay at 0.
    """
    dns: int = 0
    tcp: int = 0
    tls: int = 0
    server: int = 0
    transfer: int = 0

    lookup: int = 0
    connect: int = 0
    pre_transfer: int = 0
    start_transfer: int = 0
    total: int = 0

    def __post_init__(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise ValueError(f"timing field {f.name} must be non-negative")

    def value(self, name: str) -> int:
        """Look up a field by its external name (``"PreTransfer"`` etc.)."""
        return getattr(self, FIELD_NAMES[name])

    def to_dict(self) -> Dict[str, int]:
        return {name: getattr(self, attr) for name, attr in FIELD_NAMES.items()}
