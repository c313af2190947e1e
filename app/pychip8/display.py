from typing import Any, Final, Iterable, List, Tuple

import numpy as np
from numpy.typing import NDArray

from pychip8.constants import DISPLAY_COLS, DISPLAY_ROWS

SPRITE_WIDTH: Final[int] = 8


class Display:
    """
    Monochrome pixel buffer, ``rows`` x ``cols`` booleans in row-major order.

    Only the clear and draw instructions mutate it. Drawing XORs sprite bits
    into the buffer; sprites that run past the right or bottom edge are
    clipped, never wrapped. The sprite origin itself wraps (``x % cols``,
    ``y % rows``).
    """

    def __init__(self, rows: int = DISPLAY_ROWS, cols: int = DISPLAY_COLS) -> None:
        self.rows: Final[int] = rows
        self.cols: Final[int] = cols
        self.Buffer: NDArray[np.bool_] = np.zeros((rows, cols), dtype=np.bool_)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.rows, self.cols

    def clear(self) -> None:
        self.Buffer.fill(False)

    def draw_sprite(self, x: int, y: int, sprite: Iterable[int]) -> bool:
        """
        XOR ``sprite`` (one byte per row, MSB leftmost) onto the buffer at (x, y).

        Returns True if any set pixel was turned off (collision).
        """
        row_start = y % self.rows
        col_start = x % self.cols
        collision = False

        for row_offset, sprite_row in enumerate(sprite):
            row = row_start + row_offset
            if row >= self.rows:
                break

            for col_offset in range(SPRITE_WIDTH):
                col = col_start + col_offset
                if col >= self.cols:
                    break

                if sprite_row & (0x80 >> col_offset):
                    before = bool(self.Buffer[row, col])
                    self.Buffer[row, col] = not before
                    if before:
                        collision = True

        return collision

    def lit_pixels(self) -> List[Tuple[int, int]]:
        """Coordinates ``(row, col)`` of every set pixel, row-major."""
        return [(int(row), int(col)) for row, col in np.argwhere(self.Buffer)]

    def copy(self) -> "Display":
        clone = Display(self.rows, self.cols)
        clone.Buffer = self.Buffer.copy()
        return clone

    def __getitem__(self, key: Any) -> Any:
        return self.Buffer[key]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Display):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.Buffer, other.Buffer))

    def __str__(self) -> str:
        return "\n".join("".join("#" if cell else "." for cell in row) for row in self.Buffer)

    def __repr__(self) -> str:
        return f"<Display {self.cols}x{self.rows} lit={int(self.Buffer.sum())}>"
