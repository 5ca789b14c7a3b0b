"""Audio and vibration drivers used by the alarm output controller."""

import asyncio
import shlex
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence

from logger import logger
from . import config
from .errors import OutputDriverError


class LoopingPlayer:
    """Plays a ringtone in a loop through an external player process."""

    def __init__(self, command: Optional[str] = None, sounds_dir: Optional[Path] = None):
        self.command = shlex.split(command or config.PLAYER_COMMAND)
        self.sounds_dir = Path(sounds_dir) if sounds_dir else config.SOUNDS_DIR
        self._process: Optional[subprocess.Popen] = None

    @property
    def is_playing(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def sound_file(self, ringtone: str) -> Optional[Path]:
        """Resolve a ringtone name to a file; None for silent."""
        if ringtone == "silent":
            return None
        name = ringtone if ringtone in config.RINGTONES else config.DEFAULT_SOUND
        return self.sounds_dir / f"{name}.wav"

    def play(self, ringtone: str) -> bool:
        """Start looped playback.

        Returns:
            True if audio started, False for the silent ringtone

        Raises:
            OutputDriverError: if the sound file or player is unavailable
        """
        if self.is_playing:
            return True

        path = self.sound_file(ringtone)
        if path is None:
            return False
        if not path.exists():
            raise OutputDriverError(f"Sound file not found: {path}")

        try:
            self._process = subprocess.Popen(
                self.command + [str(path)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise OutputDriverError(f"Could not start player {self.command[0]}: {e}") from e

        logger.info(f"Sound started: {ringtone}")
        return True

    def stop(self) -> None:
        """Release the audio channel. Safe to call when nothing is playing."""
        process, self._process = self._process, None
        if process is None or process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=config.PLAYER_STOP_TIMEOUT)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
        logger.info("Sound stopped")


def _log_actuator(on: bool) -> None:
    logger.debug(f"Vibration {'on' if on else 'off'}")


class WaveformVibrator:
    """Drives a repeating on/off waveform through an actuator callable.

    Pattern entries alternate off and on durations in milliseconds,
    starting with off, and repeat from the start until cancelled.
    """

    def __init__(self, actuator: Optional[Callable[[bool], None]] = None):
        self._actuator = actuator or _log_actuator
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, pattern: Sequence[int] = config.VIBRATION_PATTERN) -> None:
        """Start the repeating waveform.

        Raises:
            OutputDriverError: if there is no running event loop to drive it
        """
        if self.is_active:
            return
        if not pattern or not any(pattern):
            raise OutputDriverError("Empty vibration pattern")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise OutputDriverError("No event loop for vibration driver") from e
        self._task = loop.create_task(self._run(tuple(pattern)))

    async def _run(self, pattern: tuple) -> None:
        try:
            while True:
                for i, duration in enumerate(pattern):
                    self._actuator(i % 2 == 1)
                    await asyncio.sleep(duration / 1000)
        finally:
            self._actuator(False)

    def cancel(self) -> None:
        """Stop vibrating. Safe to call when idle."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        self._actuator(False)
