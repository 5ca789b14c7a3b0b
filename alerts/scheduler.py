"""Schedule one-shot alert wakes with APScheduler."""

from datetime import datetime, timezone
from typing import Callable, Awaitable, Optional

from apscheduler.events import EVENT_JOB_MISSED, JobExecutionEvent
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from logger import logger
from . import config
from .errors import SchedulingDenied
from .models import ScheduledAlarm


def job_id_for(handle: int) -> str:
    """APScheduler job id for a handle."""
    return f"{config.WAKE_JOB_PREFIX}{handle}"


def from_epoch_ms(timestamp_ms: int) -> datetime:
    """Epoch milliseconds -> aware UTC datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


class WakeScheduler:
    """One outstanding wake per handle; a new schedule overwrites the old one.

    Exact wakes get a short misfire grace. If the exact path is denied, or
    an exact wake misses its grace window, the wake is rescheduled without
    a grace limit so a late wake still fires instead of being dropped.
    """

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        on_wake: Callable[[ScheduledAlarm], Awaitable],
        exact_enabled: Optional[bool] = None,
        grace_seconds: Optional[int] = None,
    ):
        self.scheduler = scheduler
        self._on_wake = on_wake
        self.exact_enabled = config.EXACT_WAKE_ENABLED if exact_enabled is None else exact_enabled
        self.grace_seconds = grace_seconds or config.EXACT_GRACE_SECONDS
        self._outstanding: dict[int, ScheduledAlarm] = {}
        scheduler.add_listener(self._on_missed, EVENT_JOB_MISSED)

    def schedule(self, alarm: ScheduledAlarm) -> bool:
        """Schedule a wake, replacing any previous wake for the same handle.

        Args:
            alarm: The wake to schedule

        Returns:
            True if scheduled exactly, False if it fell back to inexact
        """
        self.cancel(alarm.handle)

        try:
            self._schedule_exact(alarm)
            exact = True
        except SchedulingDenied as e:
            logger.warning(f"Exact wake denied for handle {alarm.handle} ({e}), using inexact wake")
            self._schedule_inexact(alarm)
            exact = False

        self._outstanding[alarm.handle] = alarm
        logger.info(
            f"Scheduled {alarm.kind.value} wake {alarm.handle} for {alarm.reminder_id}: "
            f"'{alarm.title[:30]}' at {alarm.trigger_at.isoformat()}"
            f"{'' if exact else ' (inexact)'}"
        )
        return exact

    def _schedule_exact(self, alarm: ScheduledAlarm) -> None:
        if not self.exact_enabled:
            raise SchedulingDenied("exact wakes disabled")
        if alarm.trigger_at <= datetime.now(timezone.utc):
            raise SchedulingDenied("trigger time already passed")

        self.scheduler.add_job(
            self._fire,
            trigger=DateTrigger(run_date=alarm.trigger_at),
            args=[alarm],
            id=job_id_for(alarm.handle),
            name=f"alert:{alarm.title[:30]}",
            misfire_grace_time=self.grace_seconds,
            replace_existing=True,
        )

    def _schedule_inexact(self, alarm: ScheduledAlarm) -> None:
        run_at = max(alarm.trigger_at, datetime.now(timezone.utc))
        self.scheduler.add_job(
            self._fire,
            trigger=DateTrigger(run_date=run_at),
            args=[alarm],
            id=job_id_for(alarm.handle),
            name=f"alert:{alarm.title[:30]}",
            misfire_grace_time=None,
            coalesce=True,
            replace_existing=True,
        )

    def _on_missed(self, event: JobExecutionEvent) -> None:
        """Re-arm an exact wake that missed its grace window as an inexact one."""
        if not event.job_id.startswith(config.WAKE_JOB_PREFIX):
            return
        try:
            handle = int(event.job_id[len(config.WAKE_JOB_PREFIX):])
        except ValueError:
            return

        alarm = self._outstanding.get(handle)
        if alarm is None or self.scheduler.get_job(event.job_id) is not None:
            # Cancelled, or already replaced by a newer wake
            return

        logger.warning(
            f"Wake {handle} missed its run time {event.scheduled_run_time.isoformat()}, firing late"
        )
        self._schedule_inexact(alarm)

    def cancel(self, handle: int) -> None:
        """Cancel the wake for a handle. Cancelling nothing is not an error."""
        self._outstanding.pop(handle, None)
        try:
            self.scheduler.remove_job(job_id_for(handle))
            logger.info(f"Cancelled wake {handle}")
        except JobLookupError:
            logger.debug(f"No wake to cancel for handle {handle}")

    def pending(self, handle: int) -> Optional[ScheduledAlarm]:
        """The outstanding wake for a handle, if any."""
        return self._outstanding.get(handle)

    def pending_count(self) -> int:
        return len(self._outstanding)

    async def _fire(self, alarm: ScheduledAlarm) -> None:
        """Job callback. A fired wake is one-shot; drop our record before dispatch."""
        if self._outstanding.get(alarm.handle) == alarm:
            del self._outstanding[alarm.handle]
        logger.info(f"Wake fired for handle {alarm.handle} ({alarm.kind.value})")
        await self._on_wake(alarm)
