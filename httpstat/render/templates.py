"""
ASCII timing diagrams.

A template is literal text with placeholders of the form ``%>Name`` or
``%<Name``, where ``Name`` is one of the external Timing field names
(``DNS``, ``PreTransfer``...). Filling a placeholder first blanks its whole
token, then writes the value as ``<ms>ms``:

- ``%>Name`` right-aligned, so the value ends where the token ended;
- ``%<Name`` left-aligned, starting where the token started.
"""

from __future__ import annotations

import re
from typing import List, Tuple

from ..exceptions import TemplateError
from ..models.timing import FIELD_NAMES, Timing

HTTPS_TEMPLATE = (
    "  DNS Lookup   TCP Connection   TLS Handshake   Server Processing   Content Transfer\n"
    "[    %>DNS  |         %>TCP  |        %>TLS  |         %>Server  |      %>Transfer  ]\n"
    "            |                |               |                   |                  |\n"
    "   namelookup:%<Lookup       |               |                   |                  |\n"
    "                       connect:%<Connect     |                   |                  |\n"
    "                                   pretransfer:%<PreTransfer     |                  |\n"
    "                                                     starttransfer:%<StartTransfer  |\n"
    "                                                                                total:%<Total\n"
)

HTTP_TEMPLATE = (
    "  DNS Lookup   TCP Connection   Server Processing   Content Transfer\n"
    "[    %>DNS  |         %>TCP  |         %>Server  |      %>Transfer  ]\n"
    "            |                |                   |                  |\n"
    "   namelookup:%<Lookup       |                   |                  |\n"
    "                       connect:%<Connect         |                  |\n"
    "                                     starttransfer:%<StartTransfer  |\n"
    "                                                                total:%<Total\n"
)

PLACEHOLDER = re.compile(r"%(.)([A-Za-z]*)")

Span = Tuple[int, int]


def _check(direction: str, name: str) -> None:
    if name not in FIELD_NAMES:
        raise TemplateError(message="", variable=name)
    if direction not in "<>" or not direction:
        raise TemplateError(message=f"invalid direction: {direction}", variable=name)


def validate_template(template: str) -> None:
    """
    Check every placeholder names a Timing field with a valid direction.

    Raises:
        TemplateError: on the first bad placeholder
    """
    for match in PLACEHOLDER.finditer(template):
        _check(match.group(1), match.group(2))


def fill_template(template: str, timing: Timing) -> Tuple[str, List[Span]]:
    """
    Substitute every placeholder in ``template`` with its value from ``timing``.

    Returns:
        (filled text, [(start, end) of every inserted value])

    Raises:
        TemplateError: for an unknown field name or direction
    """
    text = template
    spans: List[Span] = []

    idx = text.find("%")
    while idx != -1:
        direction = text[idx + 1:idx + 2]
        end = idx + 2
        while end < len(text) and text[end].isascii() and text[end].isalpha():
            end += 1
        name = text[idx + 2:end]
        _check(direction, name)

        text = text[:idx] + " " * (end - idx) + text[end:]
        value = f"{timing.value(name)}ms"

        if direction == ">":
            start = max(0, end - len(value))
            text = text[:start] + value + text[end:]
        else:
            start = idx
            line_end = text.find("\n", idx)
            if line_end == -1:
                line_end = len(text)
            # never overwrite the line break
            stop = min(idx + len(value), line_end)
            text = text[:idx] + value + text[stop:]
        spans.append((start, start + len(value)))

        idx = text.find("%", start + len(value))
    return text, spans


def render_template(template: str, timing: Timing) -> str:
    """Fill ``template`` and return plain text."""
    return fill_template(template, timing)[0]


def template_for(scheme: str) -> str:
    """The built-in diagram for a URL scheme."""
    return HTTPS_TEMPLATE if scheme == "https" else HTTP_TEMPLATE


# The built-ins are static; a broken edit should fail at import, not mid-run.
validate_template(HTTPS_TEMPLATE)
validate_template(HTTP_TEMPLATE)
