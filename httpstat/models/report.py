from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List

import httpx

from .timing import Timing


@dataclass
class Report:
    """Everything printed for one exchange."""
    address: str
    headers: Dict[str, List[str]]
    proto: str                 # "HTTP/1.1", "HTTP/2.0"
    status: str                # "200 OK"
    timing: Timing = field(default_factory=Timing)

    def to_dict(self) -> Dict[str, Any]:
        """Structured form with the external field names."""
        return {
            "Address": self.address,
            "Header": self.headers,
            "Proto": self.proto,
            "Status": self.status,
            "Timing": self.timing.to_dict(),
        }


def canonical_header_name(name: str) -> str:
    """``content-type`` -> ``Content-Type``; HTTP/2 delivers names lower-cased."""
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def collect_headers(headers: httpx.Headers) -> Dict[str, List[str]]:
    """Group header values by canonical name, keeping the order they arrived in."""
    grouped: Dict[str, List[str]] = {}
    for name, value in headers.multi_items():
        grouped.setdefault(canonical_header_name(name), []).append(value)
    return grouped


def format_status(response: httpx.Response) -> str:
    reason = response.reason_phrase
    return f"{response.status_code} {reason}" if reason else str(response.status_code)


def format_proto(http_version: str) -> str:
    """``HTTP/2`` -> ``HTTP/2.0``; versions that already carry a minor pass through."""
    name, _, version = http_version.partition("/")
    if version and "." not in version:
        version += ".0"
    return f"{name}/{version}" if version else name
