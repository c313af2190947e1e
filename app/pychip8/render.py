"""
Boundary between the logical pixel buffer and whatever paints it.

The engine only knows which ``(row, col)`` pixels are lit. Turning them into
scaled rectangles for a concrete surface happens here, against the
``RenderSurface`` protocol, so the core never depends on a windowing library.
"""

from dataclasses import dataclass
from typing import Final, Iterable, List, Protocol, Sequence, Tuple

from pychip8.constants import DISPLAY_COLS, DISPLAY_ROWS


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int

    def to_tuple(self) -> Tuple[int, int, int]:
        return self.r, self.g, self.b


BLACK: Final[Color] = Color(0, 0, 0)
WHITE: Final[Color] = Color(255, 255, 255)


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    w: int
    h: int


class RenderSurface(Protocol):
    def logical_width(self) -> int: ...

    def logical_height(self) -> int: ...

    def clear(self, color: Color) -> None: ...

    def draw_filled_rects(self, rects: Sequence[Rect], color: Color) -> None: ...

    def present(self) -> None: ...

    def poll(self) -> bool:
        """Return False once the user asked to stop, True otherwise. Must not block."""
        ...


def frame_to_rects(
    pixels: Iterable[Tuple[int, int]],
    width: int,
    height: int,
    rows: int = DISPLAY_ROWS,
    cols: int = DISPLAY_COLS,
    margin: int = 0,
) -> List[Rect]:
    """
    Scale lit pixels to filled rectangles covering a ``width`` x ``height`` surface.

    ``margin`` shrinks each row's height so the bottom of the picture is not
    clipped on surfaces that reserve space at the bottom edge.
    """
    x_scale = width // cols
    y_scale = height // rows - margin
    if x_scale <= 0 or y_scale <= 0:
        raise ValueError(f"Surface {width}x{height} is too small for a {cols}x{rows} display")

    return [Rect(col * x_scale, row * y_scale, x_scale, y_scale) for row, col in pixels]


def flush(
    surface: RenderSurface,
    pixels: Iterable[Tuple[int, int]],
    margin: int = 0,
    foreground: Color = WHITE,
    background: Color = BLACK,
) -> List[Rect]:
    rects = frame_to_rects(pixels, surface.logical_width(), surface.logical_height(), margin=margin)
    surface.clear(background)
    surface.draw_filled_rects(rects, foreground)
    surface.present()
    return rects
