"""Snooze and Complete actions on an alert surface."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from logger import logger
from . import config
from .models import ActionRequest, AlertKind, ScheduledAlarm
from .presenter import NotificationPresenter
from .scheduler import WakeScheduler
from .store import ReminderStateReader

_GLYPHS = (config.ALARM_GLYPH, config.SNOOZE_GLYPH)


def strip_decoration(title: Optional[str]) -> str:
    """Remove leading alarm/refresh glyphs so repeated snoozes don't stack them."""
    text = (title or "").lstrip()
    while text.startswith(_GLYPHS):
        text = text[1:].lstrip("\ufe0f").lstrip()
    return text or config.DEFAULT_TITLE


class SnoozeCoordinator:
    """Reschedules a snoozed alert on the same handle, overwriting any prior wake."""

    def __init__(
        self,
        wakes: WakeScheduler,
        presenter: NotificationPresenter,
        reader: ReminderStateReader,
        snooze_minutes: Optional[int] = None,
    ):
        self.wakes = wakes
        self.presenter = presenter
        self.reader = reader
        self.snooze_minutes = snooze_minutes or config.SNOOZE_MINUTES

    async def snooze(self, request: ActionRequest) -> Optional[ScheduledAlarm]:
        """Handle the Snooze action.

        Args:
            request: The action payload from the surface

        Returns:
            The rescheduled wake, or None if the reminder is gone or completed
        """
        handle = request.handle
        await self.presenter.cancel(handle)
        self.wakes.cancel(handle)

        presence = self.reader.exists(request.reminder_id)
        if not presence.alertable:
            logger.info(f"Reminder {request.reminder_id} no longer active, skipping snooze")
            return None

        # Relative to now, not to the original trigger
        trigger_at = datetime.now(timezone.utc) + timedelta(minutes=self.snooze_minutes)
        alarm = ScheduledAlarm(
            handle=handle,
            trigger_at=trigger_at,
            reminder_id=request.reminder_id,
            # Buttons from before a restart carry no title; use the stored one
            title=strip_decoration(request.title or self.reader.title(request.reminder_id)),
            body=request.body or "",
            kind=AlertKind.SNOOZE,
        )
        self.wakes.schedule(alarm)
        logger.info(f"Snoozed {request.reminder_id} for {self.snooze_minutes} minutes (handle {handle})")
        return alarm

    async def complete(self, request: ActionRequest) -> None:
        """Handle the Complete action: clear the surface and any pending wake."""
        await self.presenter.cancel(request.handle)
        self.wakes.cancel(request.handle)
        logger.info(f"Alert {request.handle} for {request.reminder_id} marked done")
