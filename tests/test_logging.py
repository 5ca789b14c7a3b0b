"""Tests for alert context in log records."""

import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from alerts.models import (
    ActionRequest,
    ActionTapped,
    AlertAction,
    ScheduledAlarm,
    TimeoutElapsed,
    WakeFired,
)
from alerts.router import AlertRouter
from logger import AlertContextFilter, current_alert, logger


def make_record():
    return logging.LogRecord("promemoria_alerts", logging.INFO, __file__, 1, "msg", None, None)


def test_filter_defaults_outside_handlers():
    record = make_record()
    assert AlertContextFilter().filter(record) is True
    assert record.alert == "-"


def test_handlers_carry_alert_context():
    assert all(
        any(isinstance(f, AlertContextFilter) for f in handler.filters)
        for handler in logger.handlers
    )


@pytest.fixture
def router():
    seen = []

    async def capture(*args, **kwargs):
        seen.append(current_alert.get())

    dispatcher = Mock()
    dispatcher.dispatch = AsyncMock(side_effect=capture)
    alarm = Mock()
    alarm.on_timeout = AsyncMock(side_effect=capture)
    alarm.stop_for = AsyncMock(side_effect=capture)
    presenter = Mock()
    presenter.cancel = AsyncMock()
    router = AlertRouter(dispatcher, Mock(), alarm, presenter, Mock())
    router.seen = seen
    return router


@pytest.mark.asyncio
async def test_wake_is_logged_with_its_handle(router):
    alarm = ScheduledAlarm(handle=42, trigger_at=datetime.now(timezone.utc),
                           reminder_id="r1", title="Call mum", body="")
    await router.handle(WakeFired(alarm))

    assert router.seen == ["42"]
    assert current_alert.get() == "-"


@pytest.mark.asyncio
async def test_action_and_timeout_context(router):
    await router.handle(ActionTapped(ActionRequest(AlertAction.STOP, 7, "r7")))
    await router.handle(TimeoutElapsed("0123456789abcdef"))

    assert router.seen == ["7", "session:01234567"]


@pytest.mark.asyncio
async def test_context_reset_after_failure(router):
    router.dispatcher.dispatch.side_effect = RuntimeError("boom")
    alarm = ScheduledAlarm(handle=42, trigger_at=datetime.now(timezone.utc),
                           reminder_id="r1", title="Call mum", body="")

    await router.handle(WakeFired(alarm))

    assert current_alert.get() == "-"
