"""Text helpers for transcript entries."""

import html


def decode_html_entities(text: str | None) -> str:
    """Decode HTML entities such as ``&#39;`` and ``&amp;``.

    The source platform stores message text HTML-escaped; replayed text
    must be sent as the user typed it. ``&nbsp;`` becomes a plain space.
    """
    if not text:
        return ""
    return html.unescape(text).replace("\xa0", " ")
