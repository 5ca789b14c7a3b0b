"""Point-in-time reminder alerts.

Schedules one-shot wakes with APScheduler, re-checks the reminder store
when they fire, and shows either a Discord notification with Done/Snooze
buttons or a looping alarm with bounded auto-stop.
"""

from .alarm import AlarmOutputController, AlarmState, AlertSession
from .dispatcher import AlertDispatcher
from .errors import (
    AlertError,
    AlertRequestError,
    MalformedPersistedState,
    NotificationSurfaceUnavailable,
    OutputDriverError,
    SchedulingDenied,
)
from .identifiers import HandleRegistry, derive_handle
from .models import (
    ActionRequest,
    AlertAction,
    AlertKind,
    NotificationSettings,
    ReminderPresence,
    ScheduledAlarm,
)
from .presenter import NotificationPresenter
from .router import AlertRouter
from .scheduler import WakeScheduler
from .service import AlertService
from .snooze import SnoozeCoordinator, strip_decoration
from .store import ReminderStateReader

__all__ = [
    "AlarmOutputController",
    "AlarmState",
    "AlertSession",
    "AlertDispatcher",
    "AlertError",
    "AlertRequestError",
    "MalformedPersistedState",
    "NotificationSurfaceUnavailable",
    "OutputDriverError",
    "SchedulingDenied",
    "HandleRegistry",
    "derive_handle",
    "ActionRequest",
    "AlertAction",
    "AlertKind",
    "NotificationSettings",
    "ReminderPresence",
    "ScheduledAlarm",
    "NotificationPresenter",
    "AlertRouter",
    "WakeScheduler",
    "AlertService",
    "SnoozeCoordinator",
    "strip_decoration",
    "ReminderStateReader",
]
