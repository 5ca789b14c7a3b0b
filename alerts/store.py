"""Read-only snapshot access to the reminder app's key-value store.

The store is owned and written by the reminder app. Every call re-reads
the file; nothing is cached and no lock is taken, so a read may be stale
by the time the caller acts on it.
"""

import json
from pathlib import Path
from typing import Optional

from logger import logger
from . import config
from .errors import MalformedPersistedState
from .models import (
    ABSENT,
    PRESENT,
    NotificationSettings,
    ReminderPresence,
)


class ReminderStateReader:
    """Snapshot reader for reminders, notification settings and user name."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else config.STORE_PATH

    # ------------------------------------------------------------------
    # Raw snapshot
    # ------------------------------------------------------------------

    def _load(self) -> dict:
        """Load the whole store.

        Raises:
            MalformedPersistedState: if the file is unreadable or not a JSON object
        """
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as e:
            raise MalformedPersistedState(f"Unreadable store {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise MalformedPersistedState(f"Store {self.path} is not a JSON object")
        return data

    def _get_json(self, key: str, default):
        """Decode a JSON-encoded string value from the store."""
        raw = self._load().get(key)
        if raw is None:
            return default
        if not isinstance(raw, str):
            # Tolerate values written as native JSON instead of encoded strings
            return raw
        try:
            return json.loads(raw)
        except ValueError as e:
            raise MalformedPersistedState(f"Key '{key}' is not valid JSON: {e}") from e

    def reminders(self) -> list[dict]:
        """All reminder objects, in stored order.

        Raises:
            MalformedPersistedState: if the reminders snapshot can't be parsed
        """
        items = self._get_json(config.REMINDERS_KEY, [])
        if not isinstance(items, list):
            raise MalformedPersistedState("'reminders' is not a list")
        return [r for r in items if isinstance(r, dict)]

    # ------------------------------------------------------------------
    # Queries used by the core
    # ------------------------------------------------------------------

    def exists(self, reminder_id: str) -> ReminderPresence:
        """Check whether a reminder still exists and whether it is completed.

        Fails open: a read error reports the reminder as present and not
        completed, so a broken snapshot never silently drops an alert.
        """
        if not reminder_id or reminder_id.startswith(config.TEST_ID_PREFIX):
            return PRESENT

        try:
            reminders = self.reminders()
        except MalformedPersistedState as e:
            logger.warning(f"Reminder lookup failed, assuming {reminder_id} is present: {e}")
            return PRESENT

        for r in reminders:
            if str(r.get("id", "")) == reminder_id:
                return ReminderPresence(present=True, completed=bool(r.get("isCompleted", False)))

        return ABSENT

    def title(self, reminder_id: str) -> str:
        """Stored title of a reminder, or empty string if unknown."""
        try:
            reminders = self.reminders()
        except MalformedPersistedState as e:
            logger.warning(f"Could not read title for {reminder_id}: {e}")
            return ""
        for r in reminders:
            if str(r.get("id", "")) == reminder_id:
                return str(r.get("title") or "")
        return ""

    def settings(self) -> NotificationSettings:
        """Notification settings; fail-closed defaults when missing or malformed."""
        try:
            raw = self._get_json(config.SETTINGS_KEY, {})
        except MalformedPersistedState as e:
            logger.warning(f"Using default notification settings: {e}")
            return NotificationSettings()

        if not isinstance(raw, dict):
            logger.warning("Using default notification settings: not a JSON object")
            return NotificationSettings()

        ringtone = raw.get("ringtone")
        if not isinstance(ringtone, str) or not ringtone:
            ringtone = config.DEFAULT_RINGTONE

        return NotificationSettings(
            vibration_enabled=raw.get("vibrationEnabled") is True,
            ringtone=ringtone,
            alarm_mode=raw.get("alarmMode") is True,
        )

    def user_name(self) -> str:
        """Name used to personalize alert titles, or empty string."""
        try:
            value = self._load().get(config.USER_NAME_KEY, "")
        except MalformedPersistedState as e:
            logger.warning(f"Could not read user name: {e}")
            return ""
        if not isinstance(value, str):
            return ""
        # The app's storage layer may JSON-encode plain strings
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            try:
                value = json.loads(value)
            except ValueError:
                pass
        return value.strip() if isinstance(value, str) else ""
