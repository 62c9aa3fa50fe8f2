"""Delay and sound timers and the 60 Hz background ticker."""

import threading
import time
from typing import Optional

from chipvm.constants import TIMER_HZ


class TimerBank:
    """The two 8-bit countdown counters shared with the interpreter.

    Every access goes through ``lock``. Compound read-modify-write sequences
    (inject into state, execute, write back) hold the lock themselves via
    ``with bank.lock:`` and use the unlocked ``_delay`` / ``_sound`` fields
    through :meth:`load` and :meth:`store`.
    """

    def __init__(self, delay: int = 0, sound: int = 0):
        self.lock = threading.Lock()
        self._delay = delay & 0xFF
        self._sound = sound & 0xFF
        self.ticks = 0

    @property
    def delay(self) -> int:
        with self.lock:
            return self._delay

    @delay.setter
    def delay(self, value: int):
        with self.lock:
            self._delay = int(value) & 0xFF

    @property
    def sound(self) -> int:
        with self.lock:
            return self._sound

    @sound.setter
    def sound(self, value: int):
        with self.lock:
            self._sound = int(value) & 0xFF

    def load(self) -> tuple[int, int]:
        """Current (delay, sound). Caller must hold ``lock``."""
        return self._delay, self._sound

    def store(self, delay: int, sound: int):
        """Overwrite both counters. Caller must hold ``lock``."""
        self._delay = int(delay) & 0xFF
        self._sound = int(sound) & 0xFF

    def tick(self):
        """Decrement each non-zero counter by one."""
        with self.lock:
            if self._delay > 0:
                self._delay -= 1
            if self._sound > 0:
                self._sound -= 1
            self.ticks += 1


class TimerTicker:
    """Background thread that ticks a :class:`TimerBank` at a fixed rate.

    Ticks follow a fixed schedule of deadlines, so a late wake-up never
    produces more than one tick and never accumulates drift. ``stop`` joins
    the thread; once it returns no further tick can happen.

    Example:
        >>> bank = TimerBank()
        >>> with TimerTicker(bank):
        ...     bank.delay = 30
        ...     time.sleep(0.5)
    """

    def __init__(self, bank: TimerBank, hz: int = TIMER_HZ):
        if hz <= 0:
            raise ValueError(f"Timer rate must be positive, got {hz}")
        self.bank = bank
        self.interval = 1.0 / hz
        self._stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def _run(self):
        """Internal ticking loop."""
        deadline = time.monotonic() + self.interval
        while not self._stop_event.wait(max(0.0, deadline - time.monotonic())):
            self.bank.tick()
            deadline += self.interval
            now = time.monotonic()
            if deadline < now:
                # Skip missed deadlines instead of bursting to catch up.
                deadline = now + self.interval

    def start(self) -> 'TimerTicker':
        """Start ticking."""
        if self.running:
            raise RuntimeError("TimerTicker is already running")
        self._stop_event.clear()
        self.thread = threading.Thread(target=self._run, name="chipvm-timers", daemon=True)
        self.thread.start()
        return self

    def stop(self):
        """Stop ticking and wait for the thread to exit."""
        self._stop_event.set()
        if self.thread is not None:
            self.thread.join()
            self.thread = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
