"""Main CHIP-8 execution engine.

``transition`` is the pure, jit-compatible state update for one instruction.
``check`` validates an instruction against concrete state and raises the
matching :mod:`chipvm.errors` exception; ``execute`` and ``step`` combine the
two so a faulting instruction never produces a new state.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import decode, operation_name
from chipvm.constants import PROGRAM_START, MEMORY_SIZE, MAX_PROGRAM_SIZE, ADDRESS_MASK
from chipvm.errors import OutOfBoundsAccess, ProgramTooLarge
from chipvm.stack import check_push, check_pop
from chipvm.instructions.system import execute_system_instruction
from chipvm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key
)
from chipvm.instructions.alu import execute_alu_operation
from chipvm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipvm.instructions.display import execute_display
from chipvm.instructions.misc import execute_misc_instruction


def transition(state: EmulatorState, instruction: int) -> EmulatorState:
    """Apply a single CHIP-8 instruction without validation."""
    decoded_instruction = decode(instruction)

    return jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


jitted_transition = jax.jit(transition)


def _check_index_span(state: EmulatorState, last_offset: int, what: str, address: int | None):
    last = int(state.I) + last_offset
    if last > ADDRESS_MASK:
        raise OutOfBoundsAccess(last, what, address)


def _check_call(state, decoded, address):
    check_push(state.stack, address)


def _check_return(state, decoded, address):
    check_pop(state.stack, address)


def _check_jump_with_offset(state, decoded, address):
    target = decoded.nnn + int(state.V[0])
    if target >= MEMORY_SIZE:
        raise OutOfBoundsAccess(target, "jump", address)


def _check_display(state, decoded, address):
    if decoded.n:
        _check_index_span(state, decoded.n - 1, "sprite", address)


def _check_add_to_index(state, decoded, address):
    _check_index_span(state, int(state.V[decoded.x]), "index", address)


def _check_bcd(state, decoded, address):
    _check_index_span(state, 2, "bcd", address)


def _check_register_block(state, decoded, address):
    _check_index_span(state, decoded.x, "register block", address)


_CHECKS = {
    "call": _check_call,
    "return": _check_return,
    "jump_with_offset": _check_jump_with_offset,
    "display": _check_display,
    "add_to_index": _check_add_to_index,
    "bcd_conversion": _check_bcd,
    "store_registers": _check_register_block,
    "load_registers": _check_register_block,
}


def check(state: EmulatorState, instruction: int, address: int | None = None) -> str:
    """Validate ``instruction`` against ``state`` and return its operation name.

    Raises:
        InvalidOpcode: unknown instruction word
        StackOverflow / StackUnderflow: call or return at the stack limits
        OutOfBoundsAccess: memory, index or jump target past 0xFFF
    """
    name = operation_name(instruction, address)
    checker = _CHECKS.get(name)
    if checker is not None:
        checker(state, decode(instruction), address)
    return name


def execute(state: EmulatorState, instruction: int, address: int | None = None) -> EmulatorState:
    """Validate and execute a single CHIP-8 instruction."""
    if address is None:
        address = int(state.pc)
    check(state, int(instruction), address)
    return jitted_transition(state, int(instruction))


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory."""
    instruction = _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])
    return state.replace(pc=state.pc + 2), instruction


def check_fetch(state: EmulatorState) -> int:
    """Return the current PC, raising if the instruction there is past memory."""
    pc = int(state.pc)
    if pc + 1 >= MEMORY_SIZE:
        raise OutOfBoundsAccess(pc, "pc", pc)
    return pc


def step(state: EmulatorState) -> EmulatorState:
    """Run one fetch-decode-execute cycle."""
    address = check_fetch(state)
    state, instruction = fetch(state)
    return execute(state, int(instruction), address)


def load_program(state: EmulatorState, data: bytes) -> EmulatorState:
    """Copy program bytes into memory starting at 0x200."""
    if len(data) > MAX_PROGRAM_SIZE:
        raise ProgramTooLarge(len(data), MAX_PROGRAM_SIZE)
    program = jnp.array(list(data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(data)].set(program)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM file into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
