"""Tests for the reminder store snapshot reader."""

import json

from alerts.models import NotificationSettings
from alerts.store import ReminderStateReader
from conftest import write_store


class TestExists:
    """Existence checks against the reminders snapshot."""

    def test_present_and_open(self, tmp_path):
        path = tmp_path / "s.json"
        write_store(path, reminders=[{"id": "r1", "isCompleted": False}])
        presence = ReminderStateReader(path).exists("r1")
        assert presence.present and not presence.completed
        assert presence.alertable

    def test_completed(self, tmp_path):
        path = tmp_path / "s.json"
        write_store(path, reminders=[{"id": "r1", "isCompleted": True}])
        presence = ReminderStateReader(path).exists("r1")
        assert presence.present and presence.completed
        assert not presence.alertable

    def test_absent(self, tmp_path):
        path = tmp_path / "s.json"
        write_store(path, reminders=[{"id": "other"}])
        presence = ReminderStateReader(path).exists("r1")
        assert not presence.present
        assert not presence.alertable

    def test_missing_file_means_absent(self, tmp_path):
        assert not ReminderStateReader(tmp_path / "nope.json").exists("r1").present

    def test_malformed_store_fails_open(self, tmp_path):
        """A broken snapshot never drops an alert."""
        path = tmp_path / "s.json"
        write_store(path, raw="{not json")
        presence = ReminderStateReader(path).exists("r1")
        assert presence.alertable

    def test_malformed_reminders_value_fails_open(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"reminders": "[{broken"}), encoding="utf-8")
        assert ReminderStateReader(path).exists("r1").alertable

    def test_test_ids_always_present(self, tmp_path):
        path = tmp_path / "s.json"
        write_store(path, reminders=[])
        reader = ReminderStateReader(path)
        assert reader.exists("test-1700000000000").alertable
        assert reader.exists("").alertable

    def test_reads_fresh_snapshot_each_call(self, tmp_path):
        """Changes by the owning app are seen on the next read."""
        path = tmp_path / "s.json"
        write_store(path, reminders=[{"id": "r1", "isCompleted": False}])
        reader = ReminderStateReader(path)
        assert reader.exists("r1").alertable

        write_store(path, reminders=[{"id": "r1", "isCompleted": True}])
        assert not reader.exists("r1").alertable


class TestSettings:
    """notification-settings parsing."""

    def test_reads_settings(self, tmp_path):
        path = tmp_path / "s.json"
        write_store(path, settings={"vibrationEnabled": True, "ringtone": "urgent", "alarmMode": True})
        settings = ReminderStateReader(path).settings()
        assert settings == NotificationSettings(vibration_enabled=True, ringtone="urgent", alarm_mode=True)

    def test_missing_settings_are_disabled(self, tmp_path):
        path = tmp_path / "s.json"
        write_store(path, reminders=[])
        settings = ReminderStateReader(path).settings()
        assert settings.vibration_enabled is False
        assert settings.alarm_mode is False
        assert settings.ringtone == "chime"

    def test_malformed_settings_fall_back(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"notification-settings": "{oops"}), encoding="utf-8")
        assert ReminderStateReader(path).settings() == NotificationSettings()

    def test_non_boolean_flags_are_disabled(self, tmp_path):
        path = tmp_path / "s.json"
        write_store(path, settings={"vibrationEnabled": "yes", "alarmMode": 1})
        settings = ReminderStateReader(path).settings()
        assert settings.vibration_enabled is False
        assert settings.alarm_mode is False


class TestUserName:

    def test_plain_name(self, tmp_path):
        path = tmp_path / "s.json"
        write_store(path, user_name="Giulia")
        assert ReminderStateReader(path).user_name() == "Giulia"

    def test_json_encoded_name(self, tmp_path):
        path = tmp_path / "s.json"
        write_store(path, user_name='"Giulia"')
        assert ReminderStateReader(path).user_name() == "Giulia"

    def test_missing_name(self, tmp_path):
        path = tmp_path / "s.json"
        write_store(path, reminders=[])
        assert ReminderStateReader(path).user_name() == ""


def test_title_lookup(store_path, tmp_path):
    reader = ReminderStateReader(store_path)
    assert reader.title("r1") == "Call mum"
    assert reader.title("missing") == ""

    broken = tmp_path / "broken.json"
    write_store(broken, raw="{nope")
    assert ReminderStateReader(broken).title("r1") == ""
