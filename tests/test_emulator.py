"""Tests for the fetch-decode-execute cycle and program loading."""

import jax.numpy as jnp
import pytest
from chipvm import (
    step, fetch, load_program, load_rom, operation_name,
    InvalidOpcode, OutOfBoundsAccess, ProgramTooLarge, MachineError,
    PROGRAM_START, MEMORY_SIZE,
)
from conftest import program


class TestFetch:
    """Test instruction fetch."""

    def test_fetch_big_endian(self, fresh_state):
        state = load_program(fresh_state, program(0x12AB))

        state, instruction = fetch(state)

        assert instruction == 0x12AB
        assert state.pc == PROGRAM_START + 2

    def test_fetch_past_memory(self, fresh_state):
        """An instruction at 0xFFF would need a byte at 0x1000."""
        state = fresh_state.replace(pc=jnp.uint16(0xFFF))

        with pytest.raises(OutOfBoundsAccess) as excinfo:
            step(state)

        assert excinfo.value.what == "pc"
        assert excinfo.value.address == 0xFFF

    def test_last_word_is_fetchable(self, fresh_state):
        state = fresh_state.replace(
            pc=jnp.uint16(0xFFE),
            memory=fresh_state.memory.at[0xFFE].set(0x60).at[0xFFF].set(0x07),
        )

        state = step(state)

        assert state.V[0] == 7
        assert state.pc == MEMORY_SIZE


class TestStep:
    """Test whole cycles."""

    def test_clear_and_jump_loop(self, fresh_state):
        """00E0 1200 cycles between 0x202 and 0x200 with a blank screen."""
        state = load_program(fresh_state, program(0x00E0, 0x1200))
        state = state.replace(display=jnp.ones_like(state.display))

        for i in range(1, 9):
            state = step(state)
            assert state.pc == (0x202 if i % 2 else 0x200)
            assert not jnp.any(state.display)

    def test_call_then_return(self, fresh_state):
        state = load_program(fresh_state, program(0x2206, 0x0000, 0x0000, 0x00EE))

        state = step(state)
        assert state.pc == 0x206
        assert state.stack.pointer == 1

        state = step(state)
        assert state.pc == 0x202
        assert state.stack.pointer == 0

    def test_countdown_program(self, fresh_state):
        """V0 counts down from 3 to 0, then the loop exits."""
        state = load_program(fresh_state, program(
            0x6003,  # 200: V0 = 3
            0x3000,  # 202: skip if V0 == 0
            0x1208,  # 204: jump 208
            0x120E,  # 206: jump 20E (done)
            0x70FF,  # 208: V0 += 0xFF
            0x1202,  # 20A: jump 202
            0x0000,
            0x610A,  # 20E: V1 = 10
        ))

        for _ in range(1 + 4 * 3 + 3):
            state = step(state)

        assert state.V[0] == 0
        assert state.V[1] == 10

    def test_invalid_opcode_reports_address(self, fresh_state):
        state = load_program(fresh_state, program(0x6001, 0xFFFF))
        state = step(state)

        with pytest.raises(InvalidOpcode) as excinfo:
            step(state)

        assert excinfo.value.address == 0x202
        assert excinfo.value.instruction == 0xFFFF
        assert "0x202" in str(excinfo.value)

    def test_all_faults_are_machine_errors(self, fresh_state):
        with pytest.raises(MachineError):
            step(fresh_state)  # 0000 at 0x200


class TestLoadProgram:
    """Test loading program bytes."""

    def test_load_program(self, fresh_state):
        state = load_program(fresh_state, bytes([1, 2, 3]))

        assert [int(b) for b in state.memory[0x200:0x204]] == [1, 2, 3, 0]
        assert state.pc == PROGRAM_START

    def test_largest_program(self, fresh_state):
        state = load_program(fresh_state, bytes([0xAA]) * 3584)

        assert state.memory[MEMORY_SIZE - 1] == 0xAA

    def test_program_too_large(self, fresh_state):
        with pytest.raises(ProgramTooLarge) as excinfo:
            load_program(fresh_state, bytes(3585))

        assert isinstance(excinfo.value, OutOfBoundsAccess)
        assert excinfo.value.target == 3585

    def test_font_survives_load(self, fresh_state):
        state = load_program(fresh_state, bytes(16))

        assert state.memory[0x50] == 0xF0

    def test_load_rom(self, fresh_state, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(program(0x00E0, 0x1200))

        state = load_rom(fresh_state, str(rom))

        assert [int(b) for b in state.memory[0x200:0x204]] == [0x00, 0xE0, 0x12, 0x00]


class TestOperationNames:
    """Test the instruction table."""

    @pytest.mark.parametrize("instruction,name", [
        (0x00E0, "clear_screen"),
        (0x00EE, "return"),
        (0x1234, "jump"),
        (0x2345, "call"),
        (0x5120, "skip_if_equal_register"),
        (0x8124, "alu_add"),
        (0x812E, "alu_shift_left"),
        (0xB123, "jump_with_offset"),
        (0xD125, "display"),
        (0xE19E, "skip_if_key"),
        (0xF10A, "wait_for_key"),
        (0xF165, "load_registers"),
    ])
    def test_known(self, instruction, name):
        assert operation_name(instruction) == name

    @pytest.mark.parametrize("instruction", [0x5121, 0x9128, 0xE100, 0xE19F, 0x0100])
    def test_unknown(self, instruction):
        with pytest.raises(InvalidOpcode):
            operation_name(instruction, 0x300)
