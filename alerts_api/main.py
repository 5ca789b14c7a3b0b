"""Alerts API - scheduling contract exposed to the reminder app.

Runs inside the bot process (see bot.py) so it shares one AlertService.
"""

from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from alerts import ActionRequest, AlertAction, AlertRequestError, AlertService


# ============================================================
# Pydantic Models
# ============================================================

class AlertCreate(BaseModel):
    """Schedule an alert for a reminder."""
    id: str = ""
    title: str = ""
    body: str = ""
    timestamp: Optional[int] = None  # epoch milliseconds


class ActionPayload(BaseModel):
    """Action routed from a surface."""
    model_config = ConfigDict(populate_by_name=True)

    action: AlertAction
    handle: int
    reminder_id: str = Field(default="", alias="reminderId")
    title: str = ""
    body: str = ""


# ============================================================
# App
# ============================================================

def _service(request: Request) -> AlertService:
    return request.app.state.alert_service


def _status_for(error: AlertRequestError) -> int:
    return 503 if "unavailable" in str(error) else 400


def create_app(service: AlertService) -> FastAPI:
    """Build the API bound to an AlertService."""
    app = FastAPI(
        title="Promemoria Alerts API",
        description="Schedules reminder alerts and routes alert actions",
        version="1.0.0"
    )
    app.state.alert_service = service

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint."""
        status = _service(request).get_status()
        return {
            "status": "ok",
            "alarm_state": status["alarm"]["state"],
            "pending": status["pending"],
        }

    @app.post("/alerts")
    async def schedule_alert(payload: AlertCreate, request: Request):
        """Schedule (or reschedule) the alert for a reminder."""
        try:
            return _service(request).schedule_alert(payload.id, payload.title, payload.body, payload.timestamp)
        except AlertRequestError as e:
            raise HTTPException(status_code=_status_for(e), detail=str(e))

    @app.post("/alerts/test")
    async def test_fire(request: Request):
        """Show a test notification immediately."""
        return await _service(request).test_fire()

    @app.post("/alerts/reload")
    async def reload_alerts(request: Request):
        """Reschedule upcoming reminders from the store."""
        return {"scheduled": _service(request).reload_pending()}

    @app.delete("/alerts/{reminder_id}")
    async def cancel_alert(reminder_id: str, request: Request):
        """Cancel the wake and any visible alert for a reminder."""
        try:
            await _service(request).cancel_alert(reminder_id)
        except AlertRequestError as e:
            raise HTTPException(status_code=_status_for(e), detail=str(e))
        return {"status": "cancelled"}

    @app.post("/actions")
    async def route_action(payload: ActionPayload, request: Request):
        """Run an alert action in the background (no app involved)."""
        action = ActionRequest(
            action=payload.action,
            handle=payload.handle,
            reminder_id=payload.reminder_id,
            title=payload.title,
            body=payload.body,
        )
        await _service(request).on_action(action)
        return {"status": "ok", "action": action.to_payload()}

    return app
