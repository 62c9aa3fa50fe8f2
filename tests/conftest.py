"""Test configuration and fixtures for CHIP-8 machine tests."""

import pytest
import jax.numpy as jnp
from chipvm import create_state, Machine, MachineConfig


@pytest.fixture
def fresh_state():
    """Provide a fresh machine state for each test."""
    return create_state()


@pytest.fixture
def machine():
    """Provide a machine whose timers are ticked by hand."""
    machine = Machine(MachineConfig(start_timers=False, log_level="CRITICAL"))
    yield machine
    machine.shutdown()


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program(*words):
    """Big-endian bytes for a sequence of 16-bit instruction words."""
    return b"".join(word.to_bytes(2, "big") for word in words)
