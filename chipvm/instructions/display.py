"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, FLAG_REGISTER
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def sprite_mask(memory: jnp.ndarray, index, origin_x, origin_y, height) -> jnp.ndarray:
    """Boolean screen-sized mask of the pixels a sprite sets.

    Rows start at ``memory[index]``, one byte per row, most significant bit
    leftmost. Pixels that would fall past the right or bottom edge are
    clipped, not wrapped.
    """
    in_sprite = (xx >= origin_x) & (xx < origin_x + 8) & (yy >= origin_y) & (yy < origin_y + height)

    row_offset = jnp.clip(yy - origin_y, 0, 15)
    col_offset = jnp.clip(xx - origin_x, 0, 7)
    sprite_bytes = jnp.astype(memory[jnp.astype(index, jnp.int32) + row_offset], jnp.int32)
    bits = (sprite_bytes >> (7 - col_offset)) & 1
    return (bits == 1) & in_sprite


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    The origin wraps onto the screen; the sprite body clips at the edges.
    VF is 1 if any set pixel was turned off, else 0.
    """
    origin_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    origin_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT

    sprite = sprite_mask(state.memory, state.I, origin_x, origin_y, instruction.n)
    collision = jnp.any(state.display & sprite)

    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )
