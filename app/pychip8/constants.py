from typing import Final

MEMORY_SIZE: Final[int] = 0x1000  # 4 KiB
PROGRAM_START: Final[int] = 0x200
FONT_ADDRESS: Final[int] = 0x050
GLYPH_HEIGHT: Final[int] = 5

REGISTER_COUNT: Final[int] = 16
DEFAULT_STACK_DEPTH: Final[int] = 16
KEY_COUNT: Final[int] = 16

DISPLAY_ROWS: Final[int] = 32
DISPLAY_COLS: Final[int] = 64
