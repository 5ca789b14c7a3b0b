"""Alert service - owns every alert component and exposes the app contract."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from dateutil.parser import parse as parse_datetime

from logger import logger
from . import config
from .alarm import AlarmOutputController
from .dispatcher import AlertDispatcher
from .errors import AlertRequestError, MalformedPersistedState
from .identifiers import HandleRegistry
from .models import ActionRequest, AlertKind, ScheduledAlarm, coerce_title
from .output import LoopingPlayer, WaveformVibrator
from .presenter import NotificationPresenter
from .router import AlertRouter
from .scheduler import WakeScheduler, from_epoch_ms
from .snooze import SnoozeCoordinator
from .store import ReminderStateReader
from .surfaces.base import NotificationSurface


class AlertService:
    """Explicitly owned alert state, shared by every handler.

    Usage:
        service = AlertService(AsyncIOScheduler())
        service.attach_surface(DiscordSurface(bot, channel_id, service.on_action))
        service.start()
        service.schedule_alert("r1", "Call mum", "", timestamp_ms)
    """

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        surface: Optional[NotificationSurface] = None,
        store_path: Optional[Path] = None,
        player: Optional[LoopingPlayer] = None,
        vibrator: Optional[WaveformVibrator] = None,
        app_url: str = "",
    ):
        self.scheduler = scheduler
        self.handles = HandleRegistry()
        self.reader = ReminderStateReader(store_path)
        self.presenter = NotificationPresenter(surface, app_url=app_url)
        self.wakes = WakeScheduler(scheduler, on_wake=self.on_wake)
        self.alarm = AlarmOutputController(scheduler, self.presenter, player=player, vibrator=vibrator)
        self.snooze = SnoozeCoordinator(self.wakes, self.presenter, self.reader)
        self.dispatcher = AlertDispatcher(self.wakes, self.reader, self.presenter, self.alarm)
        self.router = AlertRouter(self.dispatcher, self.snooze, self.alarm, self.presenter, self.reader)
        self.alarm.on_timeout_event = self.router.on_timeout
        self._closed = False

    def attach_surface(self, surface: NotificationSurface) -> None:
        """Set the notification surface once its host is ready."""
        self.presenter.surface = surface
        logger.info(f"Alert surface attached: {surface.name}")

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info("Alert service started")

    # ------------------------------------------------------------------
    # Event entry points (wake, action)
    # ------------------------------------------------------------------

    async def on_wake(self, alarm: ScheduledAlarm) -> None:
        await self.router.on_wake(alarm)

    async def on_action(self, request: ActionRequest) -> None:
        await self.router.on_action(request)

    # ------------------------------------------------------------------
    # Contract exposed to the reminder app
    # ------------------------------------------------------------------

    def schedule_alert(self, reminder_id: str, title: str, body: str,
                       timestamp_ms: Optional[int]) -> dict:
        """Schedule the primary alert for a reminder.

        Args:
            reminder_id: Reminder id from the app
            title: Alert title
            body: Alert body
            timestamp_ms: Trigger time in epoch milliseconds

        Returns:
            {"handle": int}

        Raises:
            AlertRequestError: on a missing id/timestamp or after shutdown
        """
        if not reminder_id or not timestamp_ms:
            raise AlertRequestError("missing id/timestamp")
        if self._closed:
            raise AlertRequestError("scheduler unavailable")

        handle = self.handles.handle(reminder_id)
        self.wakes.schedule(ScheduledAlarm(
            handle=handle,
            trigger_at=from_epoch_ms(timestamp_ms),
            reminder_id=reminder_id,
            title=coerce_title(title),
            body=body or "",
            kind=AlertKind.PRIMARY,
        ))
        return {"handle": handle}

    async def cancel_alert(self, reminder_id: str) -> None:
        """Cancel the wake, the surface and any alarm for a reminder.

        Raises:
            AlertRequestError: on a missing id
        """
        if not reminder_id:
            raise AlertRequestError("missing id")

        handle = self.handles.handle(reminder_id)
        self.wakes.cancel(handle)
        await self.alarm.stop_for(handle, reason="cancelled")
        await self.presenter.cancel(handle)
        logger.info(f"Alert cancelled for {reminder_id} (handle {handle})")

    async def test_fire(self) -> dict:
        """Show a notification right away, bypassing the scheduler."""
        reminder_id = config.TEST_FIRE_ID
        handle = self.handles.handle(reminder_id)
        await self.presenter.show(handle, reminder_id, "Test reminder",
                                  "The buttons work without opening the app")
        return {"handle": handle}

    def reload_pending(self, now: Optional[datetime] = None) -> int:
        """Schedule every upcoming alarm-enabled reminder from the store.

        Wakes live in memory, so this restores them after a restart.

        Returns:
            Count of reminders scheduled
        """
        now = now or datetime.now(timezone.utc)
        try:
            reminders = self.reader.reminders()
        except MalformedPersistedState as e:
            logger.warning(f"Skipping reminder reload: {e}")
            return 0

        loaded = 0
        skipped = 0
        for r in reminders:
            reminder_id = str(r.get("id", ""))
            if not reminder_id or r.get("isCompleted") or r.get("isAlarmEnabled", True) is False:
                continue

            trigger_at = reminder_trigger_time(r)
            if trigger_at is None:
                logger.warning(f"Skipping reminder {reminder_id}: unparseable date/time")
                skipped += 1
                continue
            if trigger_at <= now:
                skipped += 1
                continue

            self.schedule_alert(reminder_id, r.get("title", ""), r.get("description") or "",
                                int(trigger_at.timestamp() * 1000))
            loaded += 1

        logger.info(f"Reloaded {loaded} pending alerts from store (skipped {skipped})")
        return loaded

    async def shutdown(self) -> None:
        """Process teardown: release the output channel and stop scheduling."""
        self._closed = True
        await self.alarm.stop(reason="teardown")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Alert service stopped")

    def get_status(self) -> dict:
        return {
            "alarm": self.alarm.get_stats(),
            "pending": self.wakes.pending_count(),
            "closed": self._closed,
        }


def reminder_trigger_time(reminder: dict) -> Optional[datetime]:
    """When a stored reminder should alert: date + time - alarmMinutesBefore.

    Naive dates are read in the configured local timezone.
    """
    raw_date = reminder.get("date")
    if not raw_date:
        return None
    try:
        when = parse_datetime(str(raw_date))
        if when.tzinfo is None:
            when = when.replace(tzinfo=ZoneInfo(config.TIMEZONE))
        else:
            # The app stores the day as an instant; the day is the local one
            when = when.astimezone(ZoneInfo(config.TIMEZONE))

        raw_time = reminder.get("time")
        if raw_time:
            hours, minutes = (int(part) for part in str(raw_time).split(":")[:2])
            when = when.replace(hour=hours, minute=minutes, second=0, microsecond=0)

        minutes_before = int(reminder.get("alarmMinutesBefore") or 0)
    except (ValueError, TypeError, OverflowError):
        return None

    return (when - timedelta(minutes=minutes_before)).astimezone(timezone.utc)
