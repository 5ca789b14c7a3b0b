"""Pytest configuration and fixtures."""

import json
import os
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from alerts.output import LoopingPlayer, WaveformVibrator
from alerts.surfaces.base import NotificationSurface, SurfaceContent


class FakeSurface(NotificationSurface):
    """In-memory surface that records what was shown."""

    def __init__(self):
        self.visible: dict[int, SurfaceContent] = {}
        self.posted: list[SurfaceContent] = []
        self.removed: list[int] = []

    @property
    def name(self) -> str:
        return "fake"

    async def post(self, content: SurfaceContent) -> None:
        self.posted.append(content)
        self.visible[content.handle] = content

    async def remove(self, handle: int) -> None:
        self.removed.append(handle)
        self.visible.pop(handle, None)


def write_store(path: Path, reminders=None, settings=None, user_name=None, raw=None):
    """Write a key-value store file the way the reminder app does."""
    if raw is not None:
        path.write_text(raw, encoding="utf-8")
        return
    data = {}
    if reminders is not None:
        data["reminders"] = json.dumps(reminders)
    if settings is not None:
        data["notification-settings"] = json.dumps(settings)
    if user_name is not None:
        data["user-name"] = user_name
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def store_path(tmp_path):
    """Store with a single open reminder r1 and plain notifications."""
    path = tmp_path / "storage.json"
    write_store(
        path,
        reminders=[{"id": "r1", "title": "Call mum", "isCompleted": False}],
        settings={"vibrationEnabled": False, "ringtone": "chime", "alarmMode": False},
    )
    return path


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def player():
    """Player double; play() reports sound started."""
    mock = Mock(spec=LoopingPlayer)
    mock.play.return_value = True
    return mock


@pytest.fixture
def vibrator():
    return Mock(spec=WaveformVibrator)


@pytest.fixture
def scheduler():
    """Unstarted scheduler - jobs stay pending and can be inspected."""
    return AsyncIOScheduler()


@pytest.fixture
def service(scheduler, surface, store_path, player, vibrator):
    from alerts import AlertService

    return AlertService(
        scheduler,
        surface=surface,
        store_path=store_path,
        player=player,
        vibrator=vibrator,
    )
