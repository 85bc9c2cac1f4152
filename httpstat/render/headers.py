"""
Display order for response headers.

``Server`` always comes first. Hop-by-hop headers (RFC 2616 section 13.5.1)
come after every end-to-end header. Within each group names sort
lexicographically. The order only affects what is printed.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

HOP_BY_HOP = frozenset(
    name.lower()
    for name in (
        "Connection",
        "Keep-Alive",
        "Proxy-Authenticate",
        "Proxy-Authorization",
        "TE",
        "Trailers",
        "Transfer-Encoding",
        "Upgrade",
    )
)


def is_end_to_end(name: str) -> bool:
    return name.lower() not in HOP_BY_HOP


def header_sort_key(name: str) -> Tuple[int, str]:
    if name == "Server":
        return (0, name)
    if is_end_to_end(name):
        return (1, name)
    return (2, name)


def header_less(a: str, b: str) -> bool:
    """Strict ordering: True if ``a`` is displayed before ``b``."""
    return header_sort_key(a) < header_sort_key(b)


def sort_header_names(names: Iterable[str]) -> List[str]:
    return sorted(names, key=header_sort_key)
