"""Tests for control flow instructions."""

import jax.numpy as jnp
import pytest
from chipvm import execute, OutOfBoundsAccess


class TestJump:
    """Test jump instructions."""

    def test_execute_jump(self, fresh_state):
        """Test 1NNN - Jump to address."""
        state = execute(fresh_state, 0x1001)
        assert state.pc == 1

    def test_jump_ignores_prior_pc(self, fresh_state):
        """1228 lands on 0x228 wherever it runs from."""
        for start in (0x200, 0x456, 0xFFE):
            state = fresh_state.replace(pc=jnp.asarray(start, dtype=jnp.uint16))
            state = execute(state, 0x1228)
            assert state.pc == 0x228


class TestSkipInstructions:
    """Test all skip instruction variants."""

    def test_skip_if_equal_immediate_true(self, fresh_state):
        """3XNN - Should skip when VX == NN."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x42))
        initial_pc = state.pc

        state = execute(state, 0x3542)  # Skip if V5 == 0x42
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_immediate_false(self, fresh_state):
        """3XNN - Should not skip when VX != NN."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x41))
        initial_pc = state.pc

        state = execute(state, 0x3542)  # Skip if V5 == 0x42
        assert state.pc == initial_pc

    def test_skip_if_not_equal_immediate_true(self, fresh_state):
        """4XNN - Should skip when VX != NN."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x10))
        initial_pc = state.pc

        state = execute(state, 0x4320)  # Skip if V3 != 0x20
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_immediate_false(self, fresh_state):
        """4XNN - Should not skip when VX == NN."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x20))
        initial_pc = state.pc

        state = execute(state, 0x4320)  # Skip if V3 != 0x20
        assert state.pc == initial_pc

    def test_skip_if_equal_register_true(self, fresh_state):
        """5XY0 - Should skip when VX == VY."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0x55))
        state = state.replace(V=state.V.at[2].set(0x55))
        initial_pc = state.pc

        state = execute(state, 0x5120)  # Skip if V1 == V2
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_register_false(self, fresh_state):
        """5XY0 - Should not skip when VX != VY."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0x55))
        state = state.replace(V=state.V.at[2].set(0x44))
        initial_pc = state.pc

        state = execute(state, 0x5120)  # Skip if V1 == V2
        assert state.pc == initial_pc

    def test_skip_if_not_equal_register_true(self, fresh_state):
        """9XY0 - Should skip when VX != VY."""
        state = fresh_state
        state = state.replace(V=state.V.at[7].set(0xAA))
        state = state.replace(V=state.V.at[8].set(0xBB))
        initial_pc = state.pc

        state = execute(state, 0x9780)  # Skip if V7 != V8
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_register_false(self, fresh_state):
        """9XY0 - Should not skip when VX == VY."""
        state = fresh_state
        state = state.replace(V=state.V.at[7].set(0xCC))
        state = state.replace(V=state.V.at[8].set(0xCC))
        initial_pc = state.pc

        state = execute(state, 0x9780)  # Skip if V7 != V8
        assert state.pc == initial_pc

    def test_skip_boundary_values(self, fresh_state):
        """Test skip instructions with boundary values."""
        state = fresh_state.replace(V=fresh_state.V.at[0].set(0xFF))
        initial_pc = state.pc

        state = execute(state, 0x30FF)  # Skip if V0 == 255
        assert state.pc == initial_pc + 2


class TestKeySkips:
    """EX9E / EXA1 read the keypad mirrored into the state."""

    def test_skip_if_key_held(self, fresh_state):
        state = fresh_state.replace(keypad=fresh_state.keypad.at[0xA].set(True))
        state = execute(state, 0x6A0A)  # VA = 0xA
        state = execute(state, 0xEA9E)
        assert state.pc == 0x202

    def test_no_skip_if_key_not_held(self, fresh_state):
        state = execute(fresh_state, 0x6A0A)
        state = execute(state, 0xEA9E)
        assert state.pc == 0x200

    def test_skip_if_key_not_held(self, fresh_state):
        state = execute(fresh_state, 0x6303)
        state = execute(state, 0xE3A1)
        assert state.pc == 0x202

        state = state.replace(keypad=state.keypad.at[3].set(True))
        state = execute(state, 0xE3A1)
        assert state.pc == 0x202

    def test_key_index_uses_low_nibble(self, fresh_state):
        state = fresh_state.replace(keypad=fresh_state.keypad.at[0x4].set(True))
        state = execute(state, 0x6014)  # V0 = 0x14
        state = execute(state, 0xE09E)
        assert state.pc == 0x202


class TestJumpWithOffset:
    """BNNN - jump to NNN + V0."""

    def test_jump_with_offset(self, fresh_state):
        state = execute(fresh_state, 0x6010)  # V0 = 0x10
        state = execute(state, 0xB250)  # Jump to 0x250 + V0
        assert state.pc == 0x260

    def test_jump_with_offset_uses_v0_only(self, fresh_state):
        state = execute(fresh_state, 0x6010)  # V0 = 0x10
        state = execute(state, 0x6230)  # V2 = 0x30
        state = execute(state, 0xB250)
        assert state.pc == 0x260

    def test_jump_with_offset_past_memory(self, fresh_state):
        state = execute(fresh_state, 0x6002)  # V0 = 2
        with pytest.raises(OutOfBoundsAccess) as excinfo:
            execute(state, 0xBFFF)
        assert excinfo.value.target == 0x1001
        assert excinfo.value.what == "jump"
