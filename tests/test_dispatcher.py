"""Tests for wake dispatch: existence check, notification or alarm."""

from datetime import datetime, timedelta, timezone

import pytest

from alerts import config
from alerts.alarm import AlarmState
from alerts.models import AlertAction, AlertKind, ScheduledAlarm
from alerts.scheduler import job_id_for
from alerts.surfaces.base import SurfaceStyle
from conftest import write_store


def wake_for(service, reminder_id="r1", title="Call mum", kind=AlertKind.PRIMARY):
    return ScheduledAlarm(
        handle=service.handles.handle(reminder_id),
        trigger_at=datetime.now(timezone.utc),
        reminder_id=reminder_id,
        title=title,
        body="Sunday call",
        kind=kind,
    )


@pytest.mark.asyncio
async def test_open_reminder_shows_notification(service, surface, player):
    """Wake for an open reminder in notification mode posts one surface."""
    wake = wake_for(service)

    assert await service.dispatcher.dispatch(wake) == "notification"

    assert len(surface.posted) == 1
    content = surface.posted[0]
    assert content.handle == wake.handle
    assert content.style is SurfaceStyle.REMINDER
    assert content.title == f"{config.ALARM_GLYPH} Call mum"
    assert content.body == "Sunday call"
    assert [a.request.action for a in content.actions] == [AlertAction.COMPLETE, AlertAction.SNOOZE]
    assert all(a.request.reminder_id == "r1" for a in content.actions)
    player.play.assert_not_called()


@pytest.mark.asyncio
async def test_snooze_wake_uses_snooze_glyph(service, surface):
    await service.dispatcher.dispatch(wake_for(service, kind=AlertKind.SNOOZE))
    assert surface.posted[0].title == f"{config.SNOOZE_GLYPH} Call mum"


@pytest.mark.asyncio
async def test_personalized_title(service, surface, store_path):
    write_store(
        store_path,
        reminders=[{"id": "r1", "isCompleted": False}],
        user_name="Giulia",
    )
    await service.dispatcher.dispatch(wake_for(service))
    assert surface.posted[0].title == f"{config.ALARM_GLYPH} Hey Giulia! Call mum"
    # The action payload keeps the plain title
    assert surface.posted[0].actions[1].request.title == "Call mum"


@pytest.mark.asyncio
async def test_deleted_reminder_is_dropped(service, surface, player):
    wake = wake_for(service, reminder_id="gone")

    assert await service.dispatcher.dispatch(wake) == "stale"

    assert surface.posted == []
    player.play.assert_not_called()


@pytest.mark.asyncio
async def test_completed_reminder_is_dropped(service, surface, store_path, player):
    """Completed between scheduling and firing: nothing is shown."""
    write_store(store_path, reminders=[{"id": "r1", "isCompleted": True}])

    assert await service.dispatcher.dispatch(wake_for(service)) == "stale"

    assert surface.visible == {}
    player.play.assert_not_called()


@pytest.mark.asyncio
async def test_completed_snooze_wake_is_dropped(service, surface, store_path):
    write_store(store_path, reminders=[{"id": "r1", "isCompleted": True}])
    assert await service.dispatcher.dispatch(wake_for(service, kind=AlertKind.SNOOZE)) == "stale"
    assert surface.posted == []


@pytest.mark.asyncio
async def test_dispatch_clears_pending_wake(service, scheduler):
    wake = wake_for(service)
    service.wakes.schedule(ScheduledAlarm(
        handle=wake.handle,
        trigger_at=datetime.now(timezone.utc) + timedelta(minutes=5),
        reminder_id="r1",
        title="Call mum",
        body="",
    ))

    await service.dispatcher.dispatch(wake)

    assert scheduler.get_job(job_id_for(wake.handle)) is None


@pytest.mark.asyncio
async def test_malformed_store_still_alerts(service, surface, store_path):
    write_store(store_path, raw="not json at all")
    assert await service.dispatcher.dispatch(wake_for(service)) == "notification"
    assert len(surface.posted) == 1


class TestAlarmMode:
    """alarmMode=true turns a wake into a looping alarm."""

    @pytest.fixture(autouse=True)
    def alarm_mode(self, store_path):
        write_store(
            store_path,
            reminders=[
                {"id": "r1", "isCompleted": False},
                {"id": "r2", "isCompleted": False},
            ],
            settings={"vibrationEnabled": True, "ringtone": "gentle", "alarmMode": True},
        )

    @pytest.mark.asyncio
    async def test_wake_starts_alarm(self, service, surface, player, vibrator):
        wake = wake_for(service)

        assert await service.dispatcher.dispatch(wake) == "alarm"

        assert service.alarm.state is AlarmState.LOOPING
        player.play.assert_called_once_with("gentle")
        vibrator.start.assert_called_once()
        assert len(surface.posted) == 1
        assert surface.posted[0].style is SurfaceStyle.ALARM

    @pytest.mark.asyncio
    async def test_busy_channel_still_surfaces_second_reminder(self, service, surface, player):
        await service.dispatcher.dispatch(wake_for(service))
        second = wake_for(service, reminder_id="r2", title="Water plants")

        await service.dispatcher.dispatch(second)

        assert player.play.call_count == 1
        assert surface.visible[second.handle].style is SurfaceStyle.REMINDER
        assert service.alarm.session.reminder_id == "r1"

    @pytest.mark.asyncio
    async def test_refire_for_active_alarm_keeps_alarm_surface(self, service, surface):
        wake = wake_for(service)
        await service.dispatcher.dispatch(wake)
        await service.dispatcher.dispatch(wake)

        assert surface.visible[wake.handle].style is SurfaceStyle.ALARM
        assert len(surface.posted) == 1
