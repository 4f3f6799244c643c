"""Identifier to URL-segment conversion."""

import re

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_WORD = re.compile(r"[^A-Za-z0-9]+")


def css_name(name: str) -> str:
    """Convert an identifier to a hyphenated, lowercase name.

    Works for both camelCase and snake_case::

        css_name("saveArea")    -> "save-area"
        css_name("save_area")   -> "save-area"
        css_name("getHTMLPage") -> "get-html-page"
    """
    spaced = _CAMEL_BOUNDARY.sub("-", name)
    return _NON_WORD.sub("-", spaced).strip("-").lower()
