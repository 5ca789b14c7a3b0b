"""Single entry point for every external trigger.

Wakes, surface actions and auto-stop timeouts all arrive here as events.
Handlers are safe to run redundantly and concurrently on the event loop;
errors are logged and never propagate into APScheduler or Discord.
"""

from logger import current_alert, logger
from .alarm import AlarmOutputController
from .dispatcher import AlertDispatcher
from .models import (
    ActionRequest,
    ActionTapped,
    AlertAction,
    AlertEvent,
    ScheduledAlarm,
    TimeoutElapsed,
    WakeFired,
)
from .presenter import NotificationPresenter
from .snooze import SnoozeCoordinator
from .store import ReminderStateReader


class AlertRouter:
    """Routes alert events to the component that owns them."""

    def __init__(
        self,
        dispatcher: AlertDispatcher,
        snooze: SnoozeCoordinator,
        alarm: AlarmOutputController,
        presenter: NotificationPresenter,
        reader: ReminderStateReader,
    ):
        self.dispatcher = dispatcher
        self.snooze = snooze
        self.alarm = alarm
        self.presenter = presenter
        self.reader = reader

    async def handle(self, event: AlertEvent) -> None:
        """Deliver one event."""
        token = current_alert.set(_alert_label(event))
        try:
            if isinstance(event, WakeFired):
                await self.dispatcher.dispatch(event.alarm)
            elif isinstance(event, ActionTapped):
                await self._handle_action(event.request)
            elif isinstance(event, TimeoutElapsed):
                await self.alarm.on_timeout(event.session_id)
            else:
                logger.warning(f"Unknown alert event: {event!r}")
        except Exception:
            logger.exception(f"Alert event {type(event).__name__} failed")
        finally:
            current_alert.reset(token)

    async def _handle_action(self, request: ActionRequest) -> None:
        logger.info(f"Action {request.action.value} for handle {request.handle} ({request.reminder_id})")
        handle = request.handle

        if request.action is AlertAction.COMPLETE:
            await self.alarm.stop_for(handle, reason="complete")
            await self.snooze.complete(request)

        elif request.action is AlertAction.SNOOZE:
            await self.alarm.stop_for(handle, reason="snooze")
            await self.snooze.snooze(request)

        elif request.action is AlertAction.STOP:
            await self.alarm.stop_for(handle, reason="user")
            await self.presenter.cancel(handle)

        elif request.action is AlertAction.START:
            if not self.reader.exists(request.reminder_id).alertable:
                logger.info(f"Reminder {request.reminder_id} no longer active, not starting alarm")
                return
            await self.alarm.start(handle, request.reminder_id, request.title, request.body,
                                   self.reader.settings(), user_name=self.reader.user_name())

    # Adapters for callers that deliver raw payloads

    async def on_wake(self, alarm: ScheduledAlarm) -> None:
        await self.handle(WakeFired(alarm))

    async def on_action(self, request: ActionRequest) -> None:
        await self.handle(ActionTapped(request))

    async def on_timeout(self, session_id: str) -> None:
        await self.handle(TimeoutElapsed(session_id))


def _alert_label(event: AlertEvent) -> str:
    """Log context for an event: the handle, or the session for timeouts."""
    if isinstance(event, WakeFired):
        return str(event.alarm.handle)
    if isinstance(event, ActionTapped):
        return str(event.request.handle)
    if isinstance(event, TimeoutElapsed):
        return f"session:{event.session_id[:8]}"
    return "-"
