"""Cache-Control and ETag decisions.

Handlers consult the cache controller explicitly; nothing is cached
unless a handler asks::

    def routes(self):
        async def show(request):
            doc = await load(request.path_params["slug"])
            if self.app.cache.check_etag(request, doc, max_age=600):
                request.response.status = 304
                return None
            self.app.cache.set_max_age(request, 600)
            return doc

        return {"get": {"show/:slug": show}}

ETags carry three colon-separated parts: the asset release id, the
document's invalidation timestamp (milliseconds) and the time the client
first saw that pair. The third part bounds how long a client may keep
reusing a response, whatever the document does.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from wren.middleware.auth import is_authenticated
from wren.middleware.sessions import SESSION_BOOKKEEPING_KEYS

if TYPE_CHECKING:
    from wren.collaborators import AssetResolver
    from wren.http.request import Request

logger = logging.getLogger("wren.cache")

# Session keys that may be present, but only empty, on a cacheable request
EMPTY_OK_SESSION_KEYS: frozenset[str] = frozenset({"flash", "passport"})


def _invalidated_at(document: Any) -> Any:
    if isinstance(document, Mapping):
        value = document.get("cache_invalidated_at")
        return value if value is not None else document.get("cacheInvalidatedAt")
    return getattr(document, "cache_invalidated_at", None)


def _milliseconds(value: Any) -> int:
    """Milliseconds since the epoch from a datetime, an ISO 8601 string or a number."""
    if isinstance(value, str) and not value.strip().isdigit():
        value = datetime.fromisoformat(value.strip())
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    return int(value)


class CacheController:
    """Decides cache headers for one app.

    Args:
        assets: Supplies the release id used as the first ETag part.
        bookkeeping_keys: Session keys the session layer maintains itself.
        clock: Returns the current time in seconds.
    """

    __slots__ = ("_assets", "_bookkeeping_keys", "_clock")

    def __init__(
        self,
        assets: AssetResolver,
        *,
        bookkeeping_keys: frozenset[str] = SESSION_BOOKKEEPING_KEYS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._assets = assets
        self._bookkeeping_keys = bookkeeping_keys
        self._clock = clock

    def is_safe_to_cache(self, request: Request) -> bool:
        """True if the response to *request* is the same for everyone.

        Authenticated requests, error responses and sessions holding
        anything beyond bookkeeping (or an empty flash/passport) are not.
        """
        if is_authenticated(request):
            return False
        if request.response.status >= 400:
            return False
        for key, value in request.session.items():
            if key in self._bookkeeping_keys:
                continue
            if key in EMPTY_OK_SESSION_KEYS and not value:
                continue
            return False
        return True

    def set_max_age(self, request: Request, max_age: Any) -> None:
        """Set ``Cache-Control`` to ``max-age=<n>``, or ``no-store`` if unsafe."""
        if isinstance(max_age, bool) or not isinstance(max_age, (int, float)):
            logger.warning("set_max_age: max_age must be a number, got %r; ignoring", max_age)
            return
        if self.is_safe_to_cache(request):
            request.response.set_header("Cache-Control", f"max-age={max_age}")
        else:
            request.response.set_header("Cache-Control", "no-store")

    def generate_parts(self, document: Any) -> list[str] | None:
        """``[release id, invalidation timestamp]``, or None without a timestamp."""
        invalidated = _invalidated_at(document)
        if invalidated is None:
            return None
        return [self._assets.release_id(), str(_milliseconds(invalidated))]

    def etag(self, document: Any) -> str | None:
        parts = self.generate_parts(document)
        return ":".join(parts) if parts else None

    def check_etag(self, request: Request, document: Any, max_age: float) -> bool:
        """Compare the client's ``If-None-Match`` with *document*.

        Returns True on a hit and re-emits the client's ETag unchanged.
        On a miss a fresh ETag, stamped with the current time, is set
        unless the request cannot be cached at all.
        """
        parts = self.generate_parts(document)
        if not parts or not self.is_safe_to_cache(request):
            return False

        now = int(self._clock() * 1000)
        header = (request.headers.get("if-none-match") or "").strip()
        client = header.removeprefix("W/").strip('"')
        client_parts = client.split(":")
        if len(client_parts) == 3 and client_parts[:2] == parts:
            try:
                seen_at = int(client_parts[2])
            except ValueError:
                seen_at = None
            if seen_at is not None and (now - seen_at) / 1000 <= max_age:
                request.response.set_header("ETag", client)
                return True

        request.response.set_header("ETag", ":".join([*parts, str(now)]))
        return False
