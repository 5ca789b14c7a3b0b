"""Continuous alarm output - looping sound, vibration and an ongoing surface.

States:
- IDLE: No session, output channel free
- STARTING: Session created, acquiring audio/vibration and posting the surface
- LOOPING: Alarm running until stopped or auto-stopped
- STOPPING: Releasing the output channel

Transitions:
- IDLE → STARTING: start() (refused from any other state)
- STARTING → LOOPING: outputs acquired (audio may be missing: degraded session)
- STARTING/LOOPING → STOPPING: stop() from user action, auto-stop timeout or teardown
- STOPPING → IDLE: audio and vibration released, surface removed
"""

import asyncio
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from logger import logger
from . import config
from .errors import OutputDriverError
from .models import NotificationSettings
from .output import LoopingPlayer, WaveformVibrator
from .presenter import NotificationPresenter


class AlarmState(Enum):
    """Alarm output states."""
    IDLE = "idle"
    STARTING = "starting"
    LOOPING = "looping"
    STOPPING = "stopping"


@dataclass
class AlertSession:
    """The single live alarm. Only created by AlarmOutputController._open_session."""

    session_id: str
    handle: int
    reminder_id: str
    started_at: datetime
    auto_stop_deadline: datetime
    audio: bool = False
    vibration: bool = False
    degraded: bool = False  # audio driver failed, running without sound


class AlarmOutputController:
    """Owns the output channel; at most one session exists at a time."""

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        presenter: NotificationPresenter,
        player: Optional[LoopingPlayer] = None,
        vibrator: Optional[WaveformVibrator] = None,
        auto_stop_seconds: Optional[int] = None,
    ):
        self.scheduler = scheduler
        self.presenter = presenter
        self.player = player or LoopingPlayer()
        self.vibrator = vibrator or WaveformVibrator()
        self.auto_stop_seconds = auto_stop_seconds or config.AUTO_STOP_SECONDS
        # Set by AlertRouter so the timer goes through the event dispatch
        self.on_timeout_event: Optional[Callable[[str], Awaitable]] = None

        self._state = AlarmState.IDLE
        self._session: Optional[AlertSession] = None
        self._lock = threading.Lock()

        self._sessions_started = 0
        self._degraded_sessions = 0

    @property
    def state(self) -> AlarmState:
        with self._lock:
            return self._state

    @property
    def session(self) -> Optional[AlertSession]:
        with self._lock:
            return self._session

    def _open_session(self, handle: int, reminder_id: str) -> Optional[AlertSession]:
        """Guarded factory: create a session only from IDLE, under the lock."""
        with self._lock:
            if self._state is not AlarmState.IDLE:
                return None
            now = datetime.now(timezone.utc)
            session = AlertSession(
                session_id=uuid.uuid4().hex,
                handle=handle,
                reminder_id=reminder_id,
                started_at=now,
                auto_stop_deadline=now + timedelta(seconds=self.auto_stop_seconds),
            )
            self._session = session
            self._state = AlarmState.STARTING
            self._sessions_started += 1
            return session

    async def start(self, handle: int, reminder_id: str, title: str, body: str,
                    settings: NotificationSettings, user_name: str = "") -> Optional[AlertSession]:
        """Start the alarm for a handle.

        A call while another session is starting or looping is a no-op.

        Returns:
            The new session, or None if the start was refused or aborted
        """
        session = self._open_session(handle, reminder_id)
        if session is None:
            logger.debug(f"Alarm already active, ignoring start for handle {handle}")
            return None

        logger.info(f"Alarm STARTING for handle {handle}")
        try:
            try:
                session.audio = self.player.play(settings.ringtone)
            except OutputDriverError as e:
                session.degraded = True
                logger.warning(f"Alarm {handle} continuing without sound: {e}")

            if settings.vibration_enabled:
                try:
                    self.vibrator.start(config.VIBRATION_PATTERN)
                    session.vibration = True
                except OutputDriverError as e:
                    logger.warning(f"Alarm {handle} continuing without vibration: {e}")

            self._arm_auto_stop(session)
            await self.presenter.show_alarm(handle, reminder_id, title, body, user_name=user_name)
        except Exception:
            logger.exception(f"Alarm start failed for handle {handle}, releasing output")
            if self.session is session:
                await self._finish(session, reason="start failure")
            return None

        with self._lock:
            if self._session is session and self._state is AlarmState.STARTING:
                self._state = AlarmState.LOOPING
                if session.degraded:
                    self._degraded_sessions += 1
                logger.info(
                    f"Alarm STARTING → LOOPING for handle {handle}"
                    f"{' (degraded: no audio)' if session.degraded else ''}"
                )
                return session
            newer = self._session

        # stop() ran while the surface was being posted; it may have removed the
        # surface before it appeared, so clear anything left behind that a
        # newer session does not own
        if newer is None:
            await self._release_outputs()
        if newer is None or newer.handle != handle:
            await self.presenter.cancel(handle)
        return None

    async def stop(self, reason: str = "user") -> bool:
        """Stop the active session and release the output channel.

        Returns:
            True if a session was stopped, False if there was none
        """
        with self._lock:
            if self._state not in (AlarmState.STARTING, AlarmState.LOOPING):
                return False
            session = self._session
            previous = self._state
            self._state = AlarmState.STOPPING

        logger.info(f"Alarm {previous.name} → STOPPING for handle {session.handle} ({reason})")
        await self._finish(session, reason)
        return True

    async def stop_for(self, handle: int, reason: str = "user") -> bool:
        """Stop only if the active session belongs to this handle."""
        session = self.session
        if session is None or session.handle != handle:
            return False
        return await self.stop(reason)

    async def on_timeout(self, session_id: str) -> bool:
        """Auto-stop timer callback; ignored if that session already ended."""
        session = self.session
        if session is None or session.session_id != session_id:
            logger.debug(f"Auto-stop for stale session {session_id} ignored")
            return False
        return await self.stop(reason="timeout")

    async def _finish(self, session: AlertSession, reason: str) -> None:
        """Release everything the session holds and return to IDLE."""
        try:
            self._cancel_auto_stop()
            await self._release_outputs()
            await self.presenter.cancel(session.handle)
        finally:
            with self._lock:
                if self._session is session:
                    self._session = None
                    self._state = AlarmState.IDLE
            logger.info(f"Alarm → IDLE for handle {session.handle} ({reason})")

    async def _release_outputs(self) -> None:
        try:
            # stop() may wait for the player process to exit
            await asyncio.to_thread(self.player.stop)
        except Exception as e:
            logger.warning(f"Error stopping player: {e}")
        finally:
            self.vibrator.cancel()

    def _arm_auto_stop(self, session: AlertSession) -> None:
        self._cancel_auto_stop()
        callback = self.on_timeout_event or self.on_timeout
        self.scheduler.add_job(
            callback,
            trigger=DateTrigger(run_date=session.auto_stop_deadline),
            args=[session.session_id],
            id=config.AUTO_STOP_JOB_ID,
            name=f"alarm auto-stop:{session.handle}",
            misfire_grace_time=None,
            replace_existing=True,
        )

    def _cancel_auto_stop(self) -> None:
        try:
            self.scheduler.remove_job(config.AUTO_STOP_JOB_ID)
        except JobLookupError:
            pass

    def get_stats(self) -> dict:
        """Current state for the health endpoint."""
        with self._lock:
            return {
                "state": self._state.value,
                "handle": self._session.handle if self._session else None,
                "sessions_started": self._sessions_started,
                "degraded_sessions": self._degraded_sessions,
            }
