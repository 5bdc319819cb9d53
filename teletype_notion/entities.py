"""
HTML character reference decoding.

The parser already decodes entities in text nodes. decode() is applied on
top of parsed text where the manual double-escapes its content (operation
signatures and JSON code samples), so "&amp;lt;" in the source ends up as "<".
"""

import html


def decode(text: str) -> str:
    """
    Replace named and numeric character references with their characters.

    Unknown references such as "&bogus;" are left untouched.
    """
    if "&" not in text:
        return text
    return html.unescape(text)
