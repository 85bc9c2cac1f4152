"""
Tests for the response header display order.
"""

import itertools

from httpstat.render.headers import (
    HOP_BY_HOP,
    header_less,
    header_sort_key,
    sort_header_names,
)

NAMES = [
    "Transfer-Encoding",
    "Date",
    "Server",
    "Connection",
    "Content-Type",
    "Keep-Alive",
    "Cache-Control",
    "Upgrade",
]


class TestHeaderOrder:
    """Test Server-first, hop-by-hop-last ordering."""

    def test_sorted_order(self):
        assert sort_header_names(NAMES) == [
            "Server",
            "Cache-Control",
            "Content-Type",
            "Date",
            "Connection",
            "Keep-Alive",
            "Transfer-Encoding",
            "Upgrade",
        ]

    def test_server_first(self):
        for name in NAMES:
            if name != "Server":
                assert header_less("Server", name)
                assert not header_less(name, "Server")

    def test_hop_by_hop_after_end_to_end(self):
        end_to_end = [n for n in NAMES if n.lower() not in HOP_BY_HOP]
        hop = [n for n in NAMES if n.lower() in HOP_BY_HOP]

        for a, b in itertools.product(end_to_end, hop):
            assert header_less(a, b)

    def test_total_order(self):
        """Test exactly one of a<b, b<a holds for distinct names."""
        for a, b in itertools.combinations(NAMES, 2):
            assert header_less(a, b) != header_less(b, a)
        for name in NAMES:
            assert not header_less(name, name)

    def test_hop_by_hop_is_case_insensitive(self):
        assert header_sort_key("keep-alive")[0] == header_sort_key("Keep-Alive")[0] == 2
