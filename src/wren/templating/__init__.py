"""Default template renderer (kida)."""

from wren.templating.renderer import KidaRenderer

__all__ = ["KidaRenderer"]
