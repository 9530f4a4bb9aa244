# facematch/throttle.py
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Optional

from .errors import Throttled

DEFAULT_KEY = "global"
IDLE = "idle"
IN_FLIGHT = "in_flight"


@dataclass
class _GuardState:
    last_attempt: Optional[float] = None
    in_flight: bool = False


class MatchThrottle:
    """
    Bounds rate and concurrency of automatic match attempts.

    Each key (one process-wide key by default, or one per capture session)
    is either idle or in flight. `try_enter` and `leave` are each a single
    check-and-set under one mutex.

    A key idle for at least `min_interval` behaves exactly like a key never
    seen, so its entry is dropped. At most `max_keys` keys are tracked; new
    keys are rejected while the table is full.
    """

    def __init__(self, min_interval: float = 3.0, clock: Callable[[], float] = time.monotonic,
                 max_keys: int = 1024):
        self.min_interval = min_interval
        self.clock = clock
        self.max_keys = max_keys
        self._lock = threading.Lock()
        self._states: Dict[Hashable, _GuardState] = {}

    def _expired(self, state: _GuardState, now: float) -> bool:
        return not state.in_flight and (
            state.last_attempt is None or now - state.last_attempt >= self.min_interval
        )

    def _prune(self, now: float) -> None:
        # caller holds self._lock
        stale = [k for k, s in self._states.items() if self._expired(s, now)]
        for k in stale:
            del self._states[k]

    def try_enter(self, now: Optional[float] = None, key: Hashable = DEFAULT_KEY) -> None:
        if now is None:
            now = self.clock()
        with self._lock:
            self._prune(now)
            state = self._states.get(key)
            if state is None:
                if len(self._states) >= self.max_keys:
                    raise Throttled(f"Too many active sessions ({self.max_keys}).")
                state = self._states[key] = _GuardState()
            if state.in_flight:
                raise Throttled("A match attempt is already in flight.")
            if state.last_attempt is not None and now - state.last_attempt < self.min_interval:
                raise Throttled(f"Last attempt was {now - state.last_attempt:.2f}s ago.")
            state.in_flight = True

    def leave(self, now: Optional[float] = None, key: Hashable = DEFAULT_KEY) -> None:
        if now is None:
            now = self.clock()
        with self._lock:
            state = self._states.get(key)
            if state is None:
                return
            state.in_flight = False
            state.last_attempt = now
            if self._expired(state, now):
                del self._states[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._states)

    def state(self, key: Hashable = DEFAULT_KEY) -> str:
        with self._lock:
            state = self._states.get(key)
            return IN_FLIGHT if state is not None and state.in_flight else IDLE

    @contextmanager
    def guard(self, key: Hashable = DEFAULT_KEY):
        """Enter the throttle, and always leave it when the block exits."""
        self.try_enter(key=key)
        try:
            yield
        finally:
            self.leave(key=key)
