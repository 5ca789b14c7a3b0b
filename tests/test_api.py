"""Tests for the alerts HTTP API."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from alerts.scheduler import job_id_for
from alerts_api import create_app


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


def future_ms(minutes=30):
    return int((datetime.now(timezone.utc) + timedelta(minutes=minutes)).timestamp() * 1000)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["alarm_state"] == "idle"
    assert data["pending"] == 0


def test_schedule_alert(client, service, scheduler):
    response = client.post("/alerts", json={
        "id": "r1", "title": "Call mum", "body": "Sunday", "timestamp": future_ms(),
    })
    assert response.status_code == 200
    handle = response.json()["handle"]
    assert handle == service.handles.handle("r1")
    assert scheduler.get_job(job_id_for(handle)) is not None


def test_schedule_alert_missing_timestamp(client):
    response = client.post("/alerts", json={"id": "r1", "title": "Call mum"})
    assert response.status_code == 400
    assert response.json()["detail"] == "missing id/timestamp"


def test_schedule_alert_missing_id(client):
    response = client.post("/alerts", json={"title": "Call mum", "timestamp": future_ms()})
    assert response.status_code == 400


def test_cancel_alert(client, service, scheduler):
    handle = client.post("/alerts", json={"id": "r1", "timestamp": future_ms()}).json()["handle"]

    response = client.delete("/alerts/r1")

    assert response.status_code == 200
    assert response.json() == {"status": "cancelled"}
    assert scheduler.get_job(job_id_for(handle)) is None


def test_test_fire(client, surface):
    response = client.post("/alerts/test")
    assert response.status_code == 200
    assert response.json()["handle"] in surface.visible


def test_reload(client, store_path):
    response = client.post("/alerts/reload")
    assert response.status_code == 200
    # Fixture reminder has no date
    assert response.json() == {"scheduled": 0}


def test_snooze_action(client, service, scheduler):
    handle = service.handles.handle("r1")
    response = client.post("/actions", json={
        "action": "snooze", "handle": handle, "reminderId": "r1", "title": "⏰ Call mum",
    })
    assert response.status_code == 200
    assert response.json()["action"] == {
        "action": "snooze", "handle": handle, "reminderId": "r1", "title": "⏰ Call mum", "body": "",
    }
    wake = scheduler.get_job(job_id_for(handle)).args[0]
    assert wake.title == "Call mum"


def test_unknown_action_rejected(client):
    response = client.post("/actions", json={"action": "explode", "handle": 1, "reminderId": "r1"})
    assert response.status_code == 422
