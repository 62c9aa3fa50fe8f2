"""CHIP-8 ALU operations (8xxx).

Each operation maps ``(vx, vy)`` to ``(result, flag)``. Arithmetic is done in
int32 and truncated, so results wrap at 256. Only the arithmetic and shift
operations write VF; the copy and bitwise operations leave it alone.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.constants import FLAG_REGISTER
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction


def _byte(value) -> jnp.ndarray:
    return jnp.astype(value & 0xFF, jnp.uint8)


def alu_set(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY0 - Set: VX = VY."""
    return _byte(vy), jnp.zeros((), dtype=jnp.uint8)


def alu_or(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY1 - Binary OR: VX |= VY."""
    return _byte(vx | vy), jnp.zeros((), dtype=jnp.uint8)


def alu_and(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY2 - Binary AND: VX &= VY."""
    return _byte(vx & vy), jnp.zeros((), dtype=jnp.uint8)


def alu_xor(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY3 - Logical XOR: VX ^= VY."""
    return _byte(vx ^ vy), jnp.zeros((), dtype=jnp.uint8)


def alu_add(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY4 - Add: VX += VY, VF = carry."""
    result = vx + vy
    carry = jnp.astype(result > 255, jnp.uint8)
    return _byte(result), carry


def alu_sub_xy(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY5 - Subtract: VX -= VY, VF = NOT borrow."""
    not_borrow = jnp.astype(vx >= vy, jnp.uint8)
    return _byte(vx - vy), not_borrow


def alu_shift_right(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out."""
    shifted_bit = jnp.astype(vx & 1, jnp.uint8)
    return _byte(vx >> 1), shifted_bit


def alu_sub_yx(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY7 - Subtract: VX = VY - VX, VF = NOT borrow."""
    not_borrow = jnp.astype(vy >= vx, jnp.uint8)
    return _byte(vy - vx), not_borrow


def alu_shift_left(vx, vy) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out."""
    shifted_bit = jnp.astype((vx & 0x80) >> 7, jnp.uint8)
    return _byte(vx << 1), shifted_bit


# Sub-operation nibble -> branch index; -1 marks undefined sub-operations.
ALU_BRANCH = jnp.array([0, 1, 2, 3, 4, 5, 6, 7, -1, -1, -1, -1, -1, -1, 8, -1], dtype=jnp.int32)
ALU_SETS_FLAG = jnp.array([0, 0, 0, 0, 1, 1, 1, 1, 1], dtype=jnp.bool_)


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher.

    Undefined sub-operations leave the state untouched; the interpreter
    rejects them before dispatch.
    """
    vx = jnp.astype(state.V[instruction.x], jnp.int32)
    vy = jnp.astype(state.V[instruction.y], jnp.int32)
    branch = ALU_BRANCH[instruction.n]

    def _apply(state: EmulatorState) -> EmulatorState:
        index = jnp.maximum(branch, 0)
        result, vf = jax.lax.switch(
            index,
            [alu_set, alu_or, alu_and, alu_xor, alu_add,
             alu_sub_xy, alu_shift_right, alu_sub_yx, alu_shift_left],
            vx, vy
        )
        # VF is written last so the flag wins when X is F.
        new_V = state.V.at[instruction.x].set(result)
        new_V = new_V.at[FLAG_REGISTER].set(jnp.where(ALU_SETS_FLAG[index], vf, new_V[FLAG_REGISTER]))
        return state.replace(V=new_V)

    return jax.lax.cond(branch >= 0, _apply, lambda state: state, state)
