"""Report output: a coloured diagram for people, one JSON line for machines."""

from __future__ import annotations

import json
import sys
from typing import Optional, Protocol, TextIO

import httpx
from rich.console import Console
from rich.text import Text

from ..models.report import Report
from .headers import sort_header_names
from .templates import fill_template, template_for

VALUE_STYLE = "cyan"
LABEL_STYLE = "green"
MUTED_STYLE = "grey66"


class ReportRenderer(Protocol):
    def render(self, report: Report, url: httpx.URL, body_message: str = "") -> None:
        ...


class JSONRenderer:
    """Writes each report as one compact JSON object per line."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def render(self, report: Report, url: httpx.URL, body_message: str = "") -> None:
        stream = self._stream or sys.stdout
        stream.write(json.dumps(report.to_dict(), separators=(",", ":")) + "\n")
        stream.flush()


def timing_diagram(report: Report, scheme: str) -> Text:
    """The filled diagram for ``scheme`` with every value highlighted."""
    filled, spans = fill_template(template_for(scheme), report.timing)
    text = Text(filled)
    for start, end in spans:
        text.stylize(VALUE_STYLE, start, end)
    return text


class ConsoleRenderer:
    """
    Human-readable report.

    Prints the peer address, the status line, the headers in display order,
    what happened to the body and the timing diagram for the URL's scheme.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False, soft_wrap=True)

    def render(self, report: Report, url: httpx.URL, body_message: str = "") -> None:
        out = self.console

        if report.address:
            line = Text("\n")
            line.append("Connected to ", style=LABEL_STYLE)
            line.append(report.address, style=VALUE_STYLE)
            out.print(line)

        proto, _, version = report.proto.partition("/")
        status = Text("\n")
        status.append(proto or "HTTP", style=LABEL_STYLE)
        status.append("/", style=MUTED_STYLE)
        status.append(f"{version} {report.status}".strip(), style=VALUE_STYLE)
        out.print(status)

        for name in sort_header_names(report.headers):
            line = Text()
            line.append(f"{name}:", style=MUTED_STYLE)
            line.append(" ")
            line.append(",".join(report.headers[name]), style=VALUE_STYLE)
            out.print(line)

        if body_message:
            out.print(Text("\n" + body_message, style=VALUE_STYLE))

        out.print()
        out.print(timing_diagram(report, url.scheme), end="")
