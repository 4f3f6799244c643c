"""Path pattern parsing.

Route URLs use the familiar colon syntax::

    /api/v1/article/:_id        -> {"_id": "..."}
    /api/v1/article/:slug?      -> optional trailing parameter
    /files/*                    -> {"wildcard": "rest/of/path"}
"""

import re
from urllib.parse import unquote

_TOKEN = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)(\?)?|\*")


def compile_pattern(url: str) -> re.Pattern[str]:
    """Compile a route URL into an anchored regex.

    A trailing slash is optional on both sides, so ``/api/v1/article/``
    and ``/api/v1/article`` match the same route.

    Raises ``ValueError`` if the same parameter name is used twice.
    """
    path = url.rstrip("/") or "/"
    parts: list[str] = []
    seen: set[str] = set()
    wildcards = 0
    position = 0

    for match in _TOKEN.finditer(path):
        parts.append(re.escape(path[position : match.start()]))
        if match.group(0) == "*":
            name = "wildcard" if wildcards == 0 else f"wildcard_{wildcards}"
            wildcards += 1
            parts.append(f"(?P<{name}>.*)")
        else:
            name, optional = match.group(1), match.group(2)
            if name in seen:
                msg = f"Duplicate parameter {name!r} in route {url!r}"
                raise ValueError(msg)
            if optional and parts and parts[-1].endswith("/"):
                # "/:slug?" -> the slash is optional along with the segment
                parts[-1] = parts[-1][:-1]
                parts.append(f"(?:/(?P<{name}>[^/]+))?")
            else:
                parts.append(f"(?P<{name}>[^/]+)" + ("?" if optional else ""))
        seen.add(name)
        position = match.end()

    parts.append(re.escape(path[position:]))
    body = "".join(parts)
    if body in ("", "/"):
        return re.compile(r"^/?$")
    return re.compile(f"^{body}/?$")


def extract_params(pattern: re.Pattern[str], path: str) -> dict[str, str] | None:
    """Match *path* against *pattern*, returning decoded parameters."""
    match = pattern.match(path)
    if match is None:
        return None
    return {name: unquote(value) for name, value in match.groupdict().items() if value is not None}
