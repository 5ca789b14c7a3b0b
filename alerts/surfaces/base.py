"""Base notification surface and supporting types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from ..models import ActionRequest


class SurfaceStyle(Enum):
    """How prominently a surface is shown."""
    REMINDER = "reminder"
    ALARM = "alarm"


@dataclass(frozen=True)
class SurfaceAction:
    """Inline button. Runs in the background, never opens the app."""

    label: str
    request: ActionRequest


@dataclass(frozen=True)
class SurfaceContent:
    """Everything a surface needs to render one alert."""

    handle: int
    title: str
    body: str
    style: SurfaceStyle = SurfaceStyle.REMINDER
    actions: list[SurfaceAction] = field(default_factory=list)
    open_url: str = ""   # body tap target; the only path into the app
    ongoing: bool = True  # not dismissible without an action


class NotificationSurface(ABC):
    """Host notification service.

    Implementations post one surface per handle; posting again for the
    same handle replaces the previous one.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Surface identifier for logging."""
        pass

    @abstractmethod
    async def post(self, content: SurfaceContent) -> None:
        """Show (or replace) the surface for content.handle.

        Raises:
            NotificationSurfaceUnavailable: if the host service is absent
        """
        pass

    @abstractmethod
    async def remove(self, handle: int) -> None:
        """Remove the surface for a handle if present. Idempotent."""
        pass
