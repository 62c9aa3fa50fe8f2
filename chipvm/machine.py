"""Stateful CHIP-8 machine: state, timers and keypad owned together.

:class:`Machine` holds the single :class:`~chipvm.state.EmulatorState` of a
running program and advances it one instruction per :meth:`Machine.step`.
The delay and sound timers live in a :class:`~chipvm.timers.TimerBank`
ticked by a background :class:`~chipvm.timers.TimerTicker`. The interpreter
reads the delay counter for FX07 and writes one counter back after FX15 or
FX18, each a single locked access; the transition itself runs outside the
lock. FX0A suspends the calling thread on the :class:`~chipvm.keypad.Keypad`
until a key is pressed or the machine shuts down.
"""

from typing import Optional

import jax
import jax.numpy as jnp
import numpy as np
from tqdm import tqdm

from chipvm.config import MachineConfig
from chipvm.decode import decode
from chipvm.emulator import check, check_fetch, fetch, jitted_transition, load_program
from chipvm.errors import MachineError, KeyWaitTimeout
from chipvm.instructions.misc import store_key
from chipvm.keypad import Keypad
from chipvm.logging import ConsoleLogger, format_registers
from chipvm.state import EmulatorState, create_state
from chipvm.timers import TimerBank, TimerTicker


class Machine:
    """A CHIP-8 machine with its own timers thread and keypad.

    Example:
        >>> with Machine() as machine:
        ...     machine.load_program(bytes([0x00, 0xE0, 0x12, 0x00]))
        ...     machine.run(100)
    """

    def __init__(self, config: MachineConfig = MachineConfig(), logger: Optional[ConsoleLogger] = None):
        self.config = config
        self.logger = logger or ConsoleLogger("chipvm", log_level=config.log_level)
        self.timers = TimerBank()
        self.ticker = TimerTicker(self.timers, config.timer_hz)
        self.keypad = Keypad()
        self.state = create_state(jax.random.PRNGKey(config.seed))
        self.instruction_count = 0
        self._program = b""
        self._key_wait_since = None

        if config.start_timers:
            self.start()

    def start(self) -> 'Machine':
        """Start the timer thread."""
        self.ticker.start()
        self.logger.info(f"Timers started at {self.config.timer_hz} Hz")
        return self

    def shutdown(self):
        """Stop the timer thread and cancel any pending key wait."""
        self.keypad.cancel()
        if self.ticker.running:
            self.ticker.stop()
            self.logger.info("Timers stopped")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    def load_program(self, data: bytes):
        """Load program bytes at 0x200."""
        self.state = load_program(self.state, data)
        self._program = bytes(data)
        self.logger.info(f"Loaded program ({len(data)} bytes)")

    def load_rom(self, filename: str):
        """Load a program from a ROM file."""
        with open(filename, 'rb') as f:
            self.load_program(f.read())

    def reset(self):
        """Restore power-on state and reload the current program."""
        self.state = load_program(create_state(jax.random.PRNGKey(self.config.seed)), self._program)
        self.keypad.reset()
        with self.timers.lock:
            self.timers.store(0, 0)
        self.instruction_count = 0
        self._key_wait_since = None
        self.logger.info("Machine reset")

    def step(self):
        """Run one fetch-decode-execute cycle.

        Raises:
            MachineError: the instruction faulted; the machine state is
                left as it was before the step.
        """
        state = self.state.replace(keypad=self.keypad.snapshot())
        try:
            address = check_fetch(state)
            state, instruction = fetch(state)
            instruction = int(instruction)
            name = check(state, instruction, address)

            if name == "wait_for_key":
                if self._key_wait_since is None:
                    self._key_wait_since = self.keypad.press_count
                    self.logger.debug(f"0x{address:03X}: waiting for key")
                key = self.keypad.wait_for_press(
                    self.config.key_wait_timeout, address, since=self._key_wait_since
                )
                self._key_wait_since = None
                state = store_key(state, decode(instruction).x, key)
            else:
                if name == "get_delay_timer":
                    state = state.replace(delay_timer=jnp.asarray(self.timers.delay, dtype=jnp.uint8))
                state = jitted_transition(state, instruction)
                if name == "set_delay_timer":
                    self.timers.delay = int(state.delay_timer)
                elif name == "set_sound_timer":
                    self.timers.sound = int(state.sound_timer)
        except KeyWaitTimeout as e:
            self.logger.debug(str(e))
            raise
        except MachineError as e:
            self.logger.error(f"{e} | {format_registers(self.state.V)}")
            raise

        self.state = state
        self.instruction_count += 1

    def run(self, n: int, progress: bool = False) -> int:
        """Run ``n`` steps, optionally with a progress bar. Returns steps run."""
        with tqdm(total=n, desc="Executing", unit="step", disable=not progress) as bar:
            for _ in range(n):
                self.step()
                bar.update(1)
        return n

    def snapshot(self) -> EmulatorState:
        """Current state with the live timer values filled in."""
        with self.timers.lock:
            delay, sound = self.timers.load()
        return self.state.replace(
            delay_timer=jnp.asarray(delay, dtype=jnp.uint8),
            sound_timer=jnp.asarray(sound, dtype=jnp.uint8),
        )

    def framebuffer(self) -> np.ndarray:
        """Copy of the 64x32 display as a numpy boolean array, indexed [x, y]."""
        return np.array(self.state.display, dtype=np.bool_)
