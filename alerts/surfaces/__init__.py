"""Notification surfaces the presenter can post to."""

from .base import NotificationSurface, SurfaceAction, SurfaceContent, SurfaceStyle
from .discord_surface import DiscordSurface

__all__ = [
    "NotificationSurface",
    "SurfaceAction",
    "SurfaceContent",
    "SurfaceStyle",
    "DiscordSurface",
]
