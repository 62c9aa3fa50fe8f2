"""Hex keypad state shared between the host and the interpreter."""

import threading
from collections import deque
from typing import Optional

import jax.numpy as jnp

from chipvm.constants import NUM_KEYS
from chipvm.errors import KeyWaitCancelled, KeyWaitTimeout

# Press events kept for waiters that resume late.
PRESS_HISTORY = 64


def _validate_key(key: int) -> int:
    if not 0 <= key < NUM_KEYS:
        raise ValueError(f"Key code must be in 0x0-0xF, got {key!r}")
    return key


class Keypad:
    """Held state for the 16 keys plus a key-press event channel.

    The host calls :meth:`press` / :meth:`release` from its input loop. The
    interpreter reads :meth:`snapshot` for EX9E/EXA1 and blocks in
    :meth:`wait_for_press` for FX0A. Only presses that happen while a wait is
    in progress wake it; keys already held when the wait starts do not.
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._held = [False] * NUM_KEYS
        self._press_count = 0
        self._presses: deque = deque(maxlen=PRESS_HISTORY)
        self._waiters = 0
        self._cancelled = False

    def press(self, key: int):
        """Mark ``key`` held and publish a press event."""
        _validate_key(key)
        with self._condition:
            self._held[key] = True
            self._press_count += 1
            self._presses.append((self._press_count, key))
            self._condition.notify_all()

    def release(self, key: int):
        """Mark ``key`` released."""
        _validate_key(key)
        with self._condition:
            self._held[key] = False

    def is_held(self, key: int) -> bool:
        _validate_key(key)
        with self._condition:
            return self._held[key]

    def snapshot(self) -> jnp.ndarray:
        """Held state as a boolean array indexed by key code."""
        with self._condition:
            return jnp.array(self._held, dtype=jnp.bool_)

    @property
    def waiting(self) -> bool:
        """True while some thread is blocked in :meth:`wait_for_press`."""
        with self._condition:
            return self._waiters > 0

    @property
    def press_count(self) -> int:
        """Number of key presses seen so far."""
        with self._condition:
            return self._press_count

    def wait_for_press(
        self,
        timeout: Optional[float] = None,
        address: Optional[int] = None,
        since: Optional[int] = None,
    ) -> int:
        """Block until a key is pressed and return the code of the first press.

        Only presses after ``since`` (a :attr:`press_count` value, default:
        the count at call time) end the wait, so a caller retrying after a
        timeout can pass the count from its first attempt and not miss a
        press made in between.

        Raises:
            KeyWaitCancelled: :meth:`cancel` was called.
            KeyWaitTimeout: ``timeout`` seconds passed without a press.
        """
        with self._condition:
            start = self._press_count if since is None else since
            self._waiters += 1
            try:
                arrived = self._condition.wait_for(
                    lambda: self._press_count > start or self._cancelled, timeout=timeout
                )
            finally:
                self._waiters -= 1
            if self._cancelled:
                raise KeyWaitCancelled(address)
            if not arrived:
                raise KeyWaitTimeout(timeout, address)
            return self._first_press_after(start)

    def _first_press_after(self, count: int) -> int:
        # Oldest retained press wins if more than PRESS_HISTORY arrived.
        return next(key for seen, key in self._presses if seen > count)

    def cancel(self):
        """Wake every waiter with :class:`KeyWaitCancelled`."""
        with self._condition:
            self._cancelled = True
            self._condition.notify_all()

    def reset(self):
        """Release every key and re-arm after :meth:`cancel`."""
        with self._condition:
            self._cancelled = False
            self._held = [False] * NUM_KEYS
