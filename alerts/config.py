"""Alert subsystem configuration - scheduling, snooze and alarm output."""

import os
from pathlib import Path

# Handle space for derived alert handles
HANDLE_SPACE = 1_000_000

# Snooze offset, measured from the moment the Snooze action is taken
SNOOZE_MINUTES = 5

# Continuous alarm stops by itself after this long
AUTO_STOP_SECONDS = 60
AUTO_STOP_JOB_ID = "alarm:autostop"

# Vibration waveform in ms: off, on, off, on ... repeated from the start
VIBRATION_PATTERN = (0, 800, 400, 800, 400, 800, 1000)

# Ringtones the reminder app can store in notification-settings
RINGTONES = ("chime", "beep", "gentle", "urgent", "alert", "silent")
DEFAULT_RINGTONE = "chime"

# Persisted key-value store owned by the reminder app
STORE_PATH = Path(os.environ.get("ALERT_STORE_PATH", "./data/storage.json"))
REMINDERS_KEY = "reminders"
SETTINGS_KEY = "notification-settings"
USER_NAME_KEY = "user-name"

# Ids with this prefix come from test fires and always count as present
TEST_ID_PREFIX = "test-"
# Fixed id reused by every test fire, so it holds one handle
TEST_FIRE_ID = f"{TEST_ID_PREFIX}fire"

DEFAULT_TITLE = "Reminder"
ALARM_GLYPH = "\u23f0"  # alarm clock
SNOOZE_GLYPH = "\U0001f504"  # refresh arrows

# Wake scheduling
EXACT_WAKE_ENABLED = os.environ.get("ALERT_EXACT_WAKE", "1").lower() not in ("0", "false", "no")
EXACT_GRACE_SECONDS = int(os.environ.get("ALERT_EXACT_GRACE_SECONDS", 30))
WAKE_JOB_PREFIX = "alert:"

# Audio output
PLAYER_COMMAND = os.environ.get("ALERT_PLAYER_CMD", "ffplay -nodisp -loglevel quiet -loop 0")
SOUNDS_DIR = Path(os.environ.get("ALERT_SOUNDS_DIR", "./sounds"))
DEFAULT_SOUND = os.environ.get("ALERT_DEFAULT_SOUND", "alarm")
PLAYER_STOP_TIMEOUT = 2.0

# Wall-clock timezone for reminder date/time fields
TIMEZONE = os.environ.get("ALERT_TIMEZONE", "Europe/Rome")
