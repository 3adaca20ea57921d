# capgraph/render/template.py
"""Page template: static shell with the CSS, body and JS parts spliced in.

The data slot stays as a placeholder; build_html fills it per render.
"""

from __future__ import annotations

import re

from .html_markup import BODY_MARKUP
from .inline_css import CSS_BLOCK
from .inline_js import JS_BLOCK

DATA_SCRIPT_ID = "cg-data"

_PAGE = r"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8" />
<meta name="viewport" content="width=device-width, initial-scale=1" />
<meta name="generator" content="capgraph" />
<title>Capability Graph</title>
<style>
{css}
</style>
</head>
<body>
<noscript><p class="noscript">This view needs JavaScript to draw the graph.</p></noscript>
{body}
<script id="{data_id}" type="application/json">
__DATA_JSON__
</script>
<script>
{js}
</script>
</body>
</html>
"""


_SLOT_RE = re.compile(r"\{(css|body|data_id|js)\}")


def _assemble() -> str:
    # Single pass over the shell only; braces inside CSS/JS are never rescanned.
    parts = {"css": CSS_BLOCK, "body": BODY_MARKUP, "data_id": DATA_SCRIPT_ID, "js": JS_BLOCK}
    return _SLOT_RE.sub(lambda m: parts[m.group(1)], _PAGE)


HTML_TEMPLATE = _assemble()
