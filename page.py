"""HTML for the configuration page shown by the phone app."""
from html import escape
from typing import Optional
from urllib.parse import quote, unquote

CLOSE_URL = "pebblejs://close#"
CLEAR_RESPONSE = "clear"

_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
<style>
body {{ font-family: sans-serif; text-align: center; }}
img {{ width: 288px; image-rendering: pixelated; border: 1px solid #000; }}
</style>
</head>
<body>
<h1>{title}</h1>
{content}
<p>{buttons}</p>
</body>
</html>
"""


def _button(label: str, response: str = "") -> str:
    target = escape(CLOSE_URL + quote(response), quote=True)
    return f'<input type="button" value="{label}" onClick="location.href=&quot;{target}&quot;" />'


def image_page(data_uri: str) -> str:
    content = (
        f'<p><img src="{escape(data_uri, quote=True)}" alt="Drawing" /></p>\n'
        "<p>Long press the image to save or share it.</p>"
    )
    buttons = _button("Clear", CLEAR_RESPONSE) + " " + _button("Close")
    return _TEMPLATE.format(title="Draw", content=content, buttons=buttons)


def placeholder_page() -> str:
    content = (
        "<p>No image yet.</p>\n"
        "<p>Open the Draw app on your watch, open its menu and choose "
        "<b>Send to phone</b>, then come back to this page.</p>"
    )
    return _TEMPLATE.format(title="Draw", content=content, buttons=_button("Close"))


def as_data_url(html: str) -> str:
    # Trailing comment keeps hosts that sniff the extension happy.
    return "data:text/html," + quote(html + "<!--.html", safe="")


def parse_response(response: Optional[str]) -> Optional[str]:
    if not response:
        return None
    return unquote(response)
