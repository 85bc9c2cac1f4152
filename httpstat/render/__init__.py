from .console import ConsoleRenderer, JSONRenderer, ReportRenderer, timing_diagram
from .headers import HOP_BY_HOP, header_less, header_sort_key, sort_header_names
from .templates import (
    HTTPS_TEMPLATE,
    HTTP_TEMPLATE,
    fill_template,
    render_template,
    template_for,
    validate_template,
)

__all__ = [
    # Renderers
    "ConsoleRenderer",
    "JSONRenderer",
    "ReportRenderer",
    "timing_diagram",

    # Header ordering
    "HOP_BY_HOP",
    "header_less",
    "header_sort_key",
    "sort_header_names",

    # Templates
    "HTTPS_TEMPLATE",
    "HTTP_TEMPLATE",
    "fill_template",
    "render_template",
    "template_for",
    "validate_template",
]
