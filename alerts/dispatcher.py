"""Decide what a fired wake turns into."""

from logger import logger
from .alarm import AlarmOutputController
from .models import AlertKind, ScheduledAlarm
from .presenter import NotificationPresenter
from .scheduler import WakeScheduler
from .store import ReminderStateReader


class AlertDispatcher:
    """Validates a fired wake against the reminder store, then alerts.

    Primary and snooze wakes go through the same existence check.
    """

    def __init__(
        self,
        wakes: WakeScheduler,
        reader: ReminderStateReader,
        presenter: NotificationPresenter,
        alarm: AlarmOutputController,
    ):
        self.wakes = wakes
        self.reader = reader
        self.presenter = presenter
        self.alarm = alarm

    async def dispatch(self, wake: ScheduledAlarm) -> str:
        """Handle one fired wake.

        Returns:
            Outcome: "stale", "alarm" or "notification"
        """
        handle = wake.handle
        # One-shot: nothing stays armed for this handle once it fires
        self.wakes.cancel(handle)

        presence = self.reader.exists(wake.reminder_id)
        if not presence.alertable:
            state = "completed" if presence.present else "deleted"
            logger.info(f"Reminder {wake.reminder_id} {state}, dropping {wake.kind.value} alert {handle}")
            await self.alarm.stop_for(handle, reason="stale reminder")
            await self.presenter.cancel(handle)
            return "stale"

        settings = self.reader.settings()
        user_name = self.reader.user_name()

        if settings.alarm_mode:
            # start() posts the ongoing alarm surface itself
            session = await self.alarm.start(handle, wake.reminder_id, wake.title, wake.body,
                                             settings, user_name=user_name)
            active = self.alarm.session
            if session is None and (active is None or active.handle != handle):
                # Output channel busy with another alarm; still surface this one
                await self.presenter.show(handle, wake.reminder_id, wake.title, wake.body,
                                          user_name=user_name, snoozed=wake.kind is AlertKind.SNOOZE)
            return "alarm"

        await self.presenter.show(handle, wake.reminder_id, wake.title, wake.body,
                                  user_name=user_name, snoozed=wake.kind is AlertKind.SNOOZE)
        return "notification"
