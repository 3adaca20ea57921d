# capgraph/render/inline.py
from __future__ import annotations

import json
import re
from typing import Any, Dict

import orjson

from .template import DATA_SCRIPT_ID, HTML_TEMPLATE

_DATA_MARKER = "__DATA_JSON__"
_DATA_MARKER_COUNT = HTML_TEMPLATE.count(_DATA_MARKER)

_DATA_SCRIPT_RE = re.compile(
    r"<script id=\"" + DATA_SCRIPT_ID + r"\" type=\"application/json\">\s*(?P<body>.*?)\s*</script>",
    flags=re.DOTALL,
)


class HtmlPayloadExtractError(ValueError):
    pass


def build_html(payload: dict) -> str:
    # Inject DATA JSON into the HTML template.
    #   - Template must contain the __DATA_JSON__ placeholder exactly once.
    #   - Generated HTML must not contain the placeholder after injection.
    if not isinstance(payload, dict):
        raise TypeError(f"payload must be dict, got {type(payload).__name__}")

    if _DATA_MARKER_COUNT != 1:
        raise RuntimeError(f"HTML_TEMPLATE must contain {_DATA_MARKER} exactly once (found {_DATA_MARKER_COUNT})")

    data_json = orjson.dumps(payload).decode("utf-8")
    data_json = data_json.replace("</", r"<\/")  # script-safe injection
    html = HTML_TEMPLATE.replace(_DATA_MARKER, data_json)

    if _DATA_MARKER in html:
        raise RuntimeError("HTML generation failed: marker still present after injection")

    return html


def extract_payload(html: str) -> Dict[str, Any]:
    """Read the embedded payload back out of a page produced by build_html."""
    m = _DATA_SCRIPT_RE.search(html or "")
    if not m:
        raise HtmlPayloadExtractError("no cg-data script block found")
    try:
        obj = json.loads(m.group("body"))
    except ValueError as ex:
        raise HtmlPayloadExtractError(f"embedded payload is not valid JSON: {ex}") from ex
    if not isinstance(obj, dict):
        raise HtmlPayloadExtractError("embedded payload must be a JSON object")
    return obj
