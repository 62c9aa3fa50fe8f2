"""CHIP-8 instruction decoding."""

from chex import dataclass

from chipvm.errors import InvalidOpcode


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


# (mask, pattern, name) for every defined instruction, first match wins.
OPERATIONS = (
    (0xFFFF, 0x00E0, "clear_screen"),
    (0xFFFF, 0x00EE, "return"),
    (0xF000, 0x1000, "jump"),
    (0xF000, 0x2000, "call"),
    (0xF000, 0x3000, "skip_if_equal_immediate"),
    (0xF000, 0x4000, "skip_if_not_equal_immediate"),
    (0xF00F, 0x5000, "skip_if_equal_register"),
    (0xF000, 0x6000, "set"),
    (0xF000, 0x7000, "add"),
    (0xF00F, 0x8000, "alu_set"),
    (0xF00F, 0x8001, "alu_or"),
    (0xF00F, 0x8002, "alu_and"),
    (0xF00F, 0x8003, "alu_xor"),
    (0xF00F, 0x8004, "alu_add"),
    (0xF00F, 0x8005, "alu_sub_xy"),
    (0xF00F, 0x8006, "alu_shift_right"),
    (0xF00F, 0x8007, "alu_sub_yx"),
    (0xF00F, 0x800E, "alu_shift_left"),
    (0xF00F, 0x9000, "skip_if_not_equal_register"),
    (0xF000, 0xA000, "set_index"),
    (0xF000, 0xB000, "jump_with_offset"),
    (0xF000, 0xC000, "random"),
    (0xF000, 0xD000, "display"),
    (0xF0FF, 0xE09E, "skip_if_key"),
    (0xF0FF, 0xE0A1, "skip_if_not_key"),
    (0xF0FF, 0xF007, "get_delay_timer"),
    (0xF0FF, 0xF00A, "wait_for_key"),
    (0xF0FF, 0xF015, "set_delay_timer"),
    (0xF0FF, 0xF018, "set_sound_timer"),
    (0xF0FF, 0xF01E, "add_to_index"),
    (0xF0FF, 0xF029, "font_character"),
    (0xF0FF, 0xF033, "bcd_conversion"),
    (0xF0FF, 0xF055, "store_registers"),
    (0xF0FF, 0xF065, "load_registers"),
)


def operation_name(instruction: int, address: int | None = None) -> str:
    """Name the operation encoded by ``instruction``.

    Raises:
        InvalidOpcode: if the word matches no defined instruction.
    """
    for mask, pattern, name in OPERATIONS:
        if instruction & mask == pattern:
            return name
    raise InvalidOpcode(instruction, address)
