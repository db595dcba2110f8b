"""Map rendering backends behind one interface."""

from typing import TYPE_CHECKING

from rich.console import Console

from .base import MapRender, MapRenderer
from .fallback import FallbackRenderer
from .static import StaticMapRenderer
from .subscriber import MapSubscriber
from .tile import TileMapRenderer

if TYPE_CHECKING:
    from settings import MapSettings


def create_renderer(settings: "MapSettings", console: Console | None = None) -> MapRenderer:
    """Build the renderer selected by ``MAP_PROVIDER``."""
    fallback = FallbackRenderer(console=console)
    if settings.provider == "tile":
        return TileMapRenderer(settings.output_dir, tiles=settings.tile_layer, fallback=fallback)
    if settings.provider == "static":
        return StaticMapRenderer(
            settings.api_key,
            settings.output_dir,
            width=settings.static_width,
            height=settings.static_height,
            timeout=settings.static_timeout,
            fallback=fallback,
        )
    return fallback


__all__ = [
    "FallbackRenderer",
    "MapRender",
    "MapRenderer",
    "MapSubscriber",
    "StaticMapRenderer",
    "TileMapRenderer",
    "create_renderer",
]
