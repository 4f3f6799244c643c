"""App-wide settings. Anything specific to one module belongs in its options."""

from dataclasses import dataclass
from pathlib import Path

_MEGABYTE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Frozen app settings; every field has a default::

        AppConfig(release_id="2026.10", api_prefix="/api/v2")
    """

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"
    debug: bool = False

    secret_key: str = ""

    # A module's default action is "<api_prefix>/<module name>".
    api_prefix: str = "/api/v1"
    release_id: str = "dev"

    # Read by KidaRenderer only.
    template_dir: str | Path = "templates"
    autoescape: bool = True

    max_content_length: int = 16 * _MEGABYTE
