from typing import Final, Sequence, Tuple

from pychip8.constants import GLYPH_HEIGHT

# Hex digits 0-F, one byte per row, high nibble holds the 4 visible pixels.
DEFAULT_FONT: Final[Tuple[int, ...]] = (
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
)


def glyph(digit: int, font: Sequence[int] = DEFAULT_FONT) -> Tuple[int, ...]:
    """Return the rows of the glyph for hex ``digit`` (only the low nibble is used)."""
    start = (digit & 0xF) * GLYPH_HEIGHT
    return tuple(font[start : start + GLYPH_HEIGHT])
