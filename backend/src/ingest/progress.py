"""Progress notifications emitted while a study loads."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class LoadPhase(str, Enum):
    SCANNING = "scanning"
    EXTRACTING = "extracting"
    PARSING = "parsing"
    LOADING = "loading"


@dataclass(frozen=True)
class LoadProgress:
    phase: LoadPhase
    current: int
    total: int
    current_file: Optional[str] = None
    message: Optional[str] = None

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100 if self.current > 0 else 0
        return min(max(int((self.current * 100) / self.total), 0), 100)


ProgressCallback = Callable[[LoadProgress], None]


class ProgressReporter:
    """One-way sink in front of a caller supplied callback.

    Emission is serialized and ``current`` never decreases within a phase. A
    failing callback is logged and ignored so it cannot stall loading.
    """

    def __init__(self, send: Optional[ProgressCallback] = None) -> None:
        self._send = send
        self._lock = threading.Lock()
        self._phase: Optional[LoadPhase] = None
        self._current = 0

    def emit(
        self,
        phase: LoadPhase,
        current: int,
        total: int,
        current_file: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        with self._lock:
            if phase != self._phase:
                self._phase = phase
                self._current = current
            elif current < self._current:
                logger.debug("Dropping out of order progress %s %d < %d", phase.value, current, self._current)
                return
            else:
                self._current = current
            if self._send is None:
                return
            event = LoadProgress(phase, current, total, current_file, message)
            try:
                self._send(event)
            except Exception:
                logger.exception("Progress callback failed for %s %d/%d", phase.value, current, total)
