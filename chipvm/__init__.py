"""CHIP-8 virtual machine package."""

from chipvm.state import EmulatorState, StackState, create_state
from chipvm.emulator import (
    transition, execute, check, fetch, step, load_program, load_rom,
)
from chipvm.decode import DecodedInstruction, decode, operation_name
from chipvm.constants import *
from chipvm.errors import (
    MachineError, InvalidOpcode, StackOverflow, StackUnderflow,
    OutOfBoundsAccess, ProgramTooLarge, KeyWaitCancelled, KeyWaitTimeout,
)
from chipvm.timers import TimerBank, TimerTicker
from chipvm.keypad import Keypad
from chipvm.config import MachineConfig
from chipvm.machine import Machine
from chipvm.rendering import display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "transition",
    "execute",
    "check",
    "fetch",
    "step",
    "load_program",
    "load_rom",
    "DecodedInstruction",
    "decode",
    "operation_name",
    "MEMORY_SIZE",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "STACK_SIZE",
    "TIMER_HZ",
    "MachineError",
    "InvalidOpcode",
    "StackOverflow",
    "StackUnderflow",
    "OutOfBoundsAccess",
    "ProgramTooLarge",
    "KeyWaitCancelled",
    "KeyWaitTimeout",
    "TimerBank",
    "TimerTicker",
    "Keypad",
    "MachineConfig",
    "Machine",
    "display_to_rgb",
    "create_color_scheme",
]
