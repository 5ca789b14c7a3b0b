"""Shared types for the alert subsystem."""

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from . import config


class AlertKind(Enum):
    """Why a wake was scheduled."""
    PRIMARY = "primary"
    SNOOZE = "snooze"


class AlertAction(str, Enum):
    """Actions a surface can route back to the core."""
    START = "start"
    STOP = "stop"
    SNOOZE = "snooze"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ScheduledAlarm:
    """One outstanding wake. At most one exists per handle."""

    handle: int
    trigger_at: datetime
    reminder_id: str
    title: str
    body: str
    kind: AlertKind = AlertKind.PRIMARY


@dataclass(frozen=True)
class ActionRequest:
    """Payload carried by a surface action."""

    action: AlertAction
    handle: int
    reminder_id: str
    title: str = ""
    body: str = ""

    def to_payload(self) -> dict:
        """Wire format of the action routing contract."""
        data = asdict(self)
        return {
            "action": self.action.value,
            "handle": data["handle"],
            "reminderId": data["reminder_id"],
            "title": data["title"],
            "body": data["body"],
        }


@dataclass(frozen=True)
class ReminderPresence:
    """Result of an existence check against the reminder store."""

    present: bool
    completed: bool = False

    @property
    def alertable(self) -> bool:
        """True when an alert should still be shown."""
        return self.present and not self.completed


ABSENT = ReminderPresence(present=False)
PRESENT = ReminderPresence(present=True, completed=False)


@dataclass(frozen=True)
class NotificationSettings:
    """notification-settings as written by the reminder app.

    Defaults are the fail-closed values used when the key is missing
    or malformed.
    """

    vibration_enabled: bool = False
    ringtone: str = config.DEFAULT_RINGTONE
    alarm_mode: bool = False


# --- Events delivered to AlertRouter.handle ---

@dataclass(frozen=True)
class WakeFired:
    alarm: ScheduledAlarm


@dataclass(frozen=True)
class ActionTapped:
    request: ActionRequest


@dataclass(frozen=True)
class TimeoutElapsed:
    session_id: str


AlertEvent = Union[WakeFired, ActionTapped, TimeoutElapsed]


def coerce_title(title: Optional[str]) -> str:
    """Fall back to the default title for empty values."""
    return title.strip() if title and title.strip() else config.DEFAULT_TITLE
