"""
Tests for the Report model and its console/JSON renderers.
"""

import io
import json

import httpx
import pytest
from rich.console import Console

from httpstat.models.report import (
    Report,
    canonical_header_name,
    collect_headers,
    format_proto,
    format_status,
)
from httpstat.models.timing import Timing
from httpstat.render.console import ConsoleRenderer, JSONRenderer, timing_diagram


@pytest.fixture
def report():
    return Report(
        address="93.184.216.34:443",
        headers={
            "Connection": ["keep-alive"],
            "Content-Type": ["text/html"],
            "Server": ["ECS (nyb/1D2E)"],
            "Vary": ["Accept-Encoding", "Origin"],
        },
        proto="HTTP/1.1",
        status="200 OK",
        timing=Timing(dns=5, tcp=10, tls=20, server=50, transfer=100,
                      lookup=5, connect=15, pre_transfer=35, start_transfer=85, total=185),
    )


def render_to_text(report, url, body_message=""):
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, color_system=None, highlight=False)
    ConsoleRenderer(console).render(report, httpx.URL(url), body_message)
    return buffer.getvalue()


class TestReportModel:
    """Test Report assembly helpers."""

    def test_canonical_header_name(self):
        assert canonical_header_name("content-type") == "Content-Type"
        assert canonical_header_name("x-request-id") == "X-Request-Id"
        assert canonical_header_name("ETAG") == "Etag"

    def test_collect_headers_groups_values(self):
        headers = httpx.Headers(
            [("set-cookie", "a=1"), ("Content-Type", "text/html"), ("Set-Cookie", "b=2")]
        )

        assert collect_headers(headers) == {
            "Set-Cookie": ["a=1", "b=2"],
            "Content-Type": ["text/html"],
        }

    def test_format_status(self):
        assert format_status(httpx.Response(404)) == "404 Not Found"
        assert format_status(httpx.Response(200)) == "200 OK"

    @pytest.mark.parametrize(
        "http_version, proto",
        [
            ("HTTP/1.1", "HTTP/1.1"),
            ("HTTP/1.0", "HTTP/1.0"),
            ("HTTP/2", "HTTP/2.0"),
            ("HTTP/3", "HTTP/3.0"),
        ],
    )
    def test_format_proto(self, http_version, proto):
        assert format_proto(http_version) == proto

    def test_to_dict(self, report):
        data = report.to_dict()

        assert list(data) == ["Address", "Header", "Proto", "Status", "Timing"]
        assert data["Timing"]["PreTransfer"] == 35
        assert data["Header"]["Vary"] == ["Accept-Encoding", "Origin"]


class TestJSONRenderer:
    def test_one_line_per_report(self, report):
        stream = io.StringIO()
        renderer = JSONRenderer(stream=stream)

        renderer.render(report, httpx.URL("https://example.com"))
        renderer.render(report, httpx.URL("https://example.com"))

        lines = stream.getvalue().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0]) == report.to_dict()
        assert '": ' not in lines[0]
        assert ', "' not in lines[0]


class TestConsoleRenderer:
    """Test the human-readable report."""

    def test_layout(self, report):
        text = render_to_text(report, "https://example.com", "Body discarded")
        lines = text.splitlines()

        assert "Connected to 93.184.216.34:443" in lines
        assert "HTTP/1.1 200 OK" in lines
        assert "Body discarded" in lines
        assert "TLS Handshake" in text
        assert lines.index("Connected to 93.184.216.34:443") < lines.index("HTTP/1.1 200 OK")

    def test_header_order_and_joining(self, report):
        lines = render_to_text(report, "https://example.com").splitlines()
        header_lines = [line for line in lines if ": " in line and not line.startswith(" ")]

        assert header_lines == [
            "Server: ECS (nyb/1D2E)",
            "Content-Type: text/html",
            "Vary: Accept-Encoding,Origin",
            "Connection: keep-alive",
        ]

    def test_http2_status_line(self, report):
        report.proto = format_proto("HTTP/2")

        assert "HTTP/2.0 200 OK" in render_to_text(report, "https://example.com").splitlines()

    def test_no_address_line_for_unknown_peer(self, report):
        report.address = ""

        assert "Connected to" not in render_to_text(report, "https://example.com")

    def test_http_diagram(self, report):
        text = render_to_text(report, "http://example.com")

        assert "TLS Handshake" not in text
        assert "185ms" in text

    def test_diagram_values_styled(self, report):
        diagram = timing_diagram(report, "https")
        styled = {diagram.plain[span.start:span.end] for span in diagram.spans}

        assert {"5ms", "10ms", "185ms"} <= styled
