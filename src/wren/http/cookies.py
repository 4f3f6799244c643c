"""Request cookies in, ``Set-Cookie`` directives out."""

from dataclasses import dataclass


def parse_cookies(header: str) -> dict[str, str]:
    """``"a=1; b=2"`` -> ``{"a": "1", "b": "2"}``.

    Chunks without ``=`` are skipped. When a name repeats, the first
    value wins; browsers send the most specific cookie first.
    """
    cookies: dict[str, str] = {}
    for chunk in header.split(";"):
        name, sep, value = chunk.strip().partition("=")
        name = name.strip()
        if sep and name and name not in cookies:
            cookies[name] = value.strip().strip('"')
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """One cookie a response sets."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    def to_header_value(self) -> str:
        attributes = (
            (self.max_age is not None, f"Max-Age={self.max_age}"),
            (bool(self.path), f"Path={self.path}"),
            (self.secure, "Secure"),
            (self.httponly, "HttpOnly"),
            (bool(self.samesite), f"SameSite={self.samesite}"),
        )
        return "; ".join([f"{self.name}={self.value}", *(text for on, text in attributes if on)])
