"""Build alert surfaces and hand them to the notification surface."""

from typing import Optional

from logger import logger
from . import config
from .errors import NotificationSurfaceUnavailable
from .models import ActionRequest, AlertAction, coerce_title
from .surfaces.base import NotificationSurface, SurfaceAction, SurfaceContent, SurfaceStyle


def personalize(title: str, user_name: str) -> str:
    """Prefix the title with the user's name when one is set."""
    return f"Hey {user_name}! {title}" if user_name else title


class NotificationPresenter:
    """Posts and removes alert surfaces.

    Action payloads always carry the plain title; decoration and
    personalization only exist on the rendered surface.
    """

    def __init__(self, surface: Optional[NotificationSurface], app_url: str = ""):
        self.surface = surface
        self.app_url = app_url

    def _actions(self, handle: int, reminder_id: str, title: str, body: str,
                 style: SurfaceStyle) -> list[SurfaceAction]:
        def request(action: AlertAction) -> ActionRequest:
            return ActionRequest(action=action, handle=handle, reminder_id=reminder_id, title=title, body=body)

        if style is SurfaceStyle.ALARM:
            return [
                SurfaceAction("✓ Done", request(AlertAction.STOP)),
                SurfaceAction(f"{config.ALARM_GLYPH} {config.SNOOZE_MINUTES} min", request(AlertAction.SNOOZE)),
            ]
        return [
            SurfaceAction("✓ Done", request(AlertAction.COMPLETE)),
            SurfaceAction(f"{config.ALARM_GLYPH} {config.SNOOZE_MINUTES} min", request(AlertAction.SNOOZE)),
        ]

    async def _post(self, content: SurfaceContent) -> bool:
        try:
            if self.surface is None:
                raise NotificationSurfaceUnavailable("no notification surface configured")
            await self.surface.post(content)
        except NotificationSurfaceUnavailable as e:
            # No durable queue for notifications; the alert is dropped
            logger.warning(f"Dropping alert {content.handle}: {e}")
            return False
        return True

    async def show(self, handle: int, reminder_id: str, title: str, body: str,
                   user_name: str = "", snoozed: bool = False) -> bool:
        """Post the persistent reminder surface with Complete and Snooze.

        Args:
            handle: Alert handle (one surface per handle)
            reminder_id: Reminder the actions refer to
            title: Plain reminder title
            body: Reminder body text
            user_name: Optional name to personalize the title
            snoozed: Render as a re-fired snooze

        Returns:
            True if the surface was posted
        """
        title = coerce_title(title)
        glyph = config.SNOOZE_GLYPH if snoozed else config.ALARM_GLYPH
        content = SurfaceContent(
            handle=handle,
            title=f"{glyph} {personalize(title, user_name)}",
            body=body or "",
            style=SurfaceStyle.REMINDER,
            actions=self._actions(handle, reminder_id, title, body or "", SurfaceStyle.REMINDER),
            open_url=self.app_url,
        )
        posted = await self._post(content)
        if posted:
            logger.info(f"Showing alert {handle} for {reminder_id}: '{title[:30]}'")
        return posted

    async def show_alarm(self, handle: int, reminder_id: str, title: str, body: str,
                         user_name: str = "") -> bool:
        """Post the ongoing alarm surface with Stop and Snooze."""
        title = coerce_title(title)
        content = SurfaceContent(
            handle=handle,
            title=f"{config.ALARM_GLYPH} {personalize(title, user_name)}",
            body=body or "",
            style=SurfaceStyle.ALARM,
            actions=self._actions(handle, reminder_id, title, body or "", SurfaceStyle.ALARM),
            open_url=self.app_url,
        )
        posted = await self._post(content)
        if posted:
            logger.info(f"Showing alarm {handle} for {reminder_id}: '{title[:30]}'")
        return posted

    async def cancel(self, handle: int) -> None:
        """Remove the surface for a handle if present. Idempotent."""
        if self.surface is None:
            return
        await self.surface.remove(handle)
