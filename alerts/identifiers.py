"""Reminder id -> alert handle mapping.

Handles key the wake scheduler, the notification surface and the alarm
session. The derived handle is stable across restarts; the registry
resolves the rare collisions on a 10^6 space by probing to the next
free slot, so two reminders never share a handle within a process.
"""

import threading
import zlib
from typing import Optional

from logger import logger
from . import config


def derive_handle(reminder_id: str, space: Optional[int] = None) -> int:
    """Derive the preferred handle for a reminder id.

    Pure and deterministic (no per-process hash seeding).
    """
    return zlib.crc32(reminder_id.encode("utf-8")) % (space or config.HANDLE_SPACE)


class HandleRegistry:
    """Bidirectional reminder id <-> handle table for the process lifetime."""

    def __init__(self, space: Optional[int] = None):
        self.space = space or config.HANDLE_SPACE
        self._by_id: dict[str, int] = {}
        self._by_handle: dict[int, str] = {}
        self._lock = threading.Lock()

    def handle(self, reminder_id: str) -> int:
        """Get the handle for an id, allocating it on first use."""
        with self._lock:
            existing = self._by_id.get(reminder_id)
            if existing is not None:
                return existing

            preferred = derive_handle(reminder_id, self.space)
            candidate = preferred
            while candidate in self._by_handle:
                candidate = (candidate + 1) % self.space
                if candidate == preferred:
                    raise RuntimeError("Alert handle space exhausted")

            if candidate != preferred:
                logger.warning(
                    f"Handle collision for {reminder_id}: {preferred} taken by "
                    f"{self._by_handle[preferred]}, using {candidate}"
                )

            self._by_id[reminder_id] = candidate
            self._by_handle[candidate] = reminder_id
            return candidate

    def reminder_id(self, handle: int) -> Optional[str]:
        """Reverse lookup; None if the handle was never allocated."""
        with self._lock:
            return self._by_handle.get(handle)

    def __len__(self) -> int:
        return len(self._by_id)
