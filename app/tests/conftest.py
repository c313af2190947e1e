import sys
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pychip8.emulator import Emulator  # noqa: E402
from pychip8.render import Color, Rect  # noqa: E402
from pychip8.rom import Rom  # noqa: E402


def make_emulator(program: bytes, **kwargs) -> Emulator:
    emu = Emulator(seed=1234, **kwargs)
    emu.Load(Rom.from_bytes(program).unwrap())
    return emu


def run(emu: Emulator, cycles: int) -> Emulator:
    for _ in range(cycles):
        emu.Step()
    return emu


class FakeSurface:
    """Records everything the emulator paints; asks to stop after ``polls`` polls."""

    def __init__(self, polls: int = 10, width: int = 640, height: int = 320) -> None:
        self.polls = polls
        self.width = width
        self.height = height
        self.poll_count = 0
        self.frames: List[Tuple[Color, List[Rect], Color]] = []
        self._background: Color = Color(0, 0, 0)
        self.presented = 0

    def logical_width(self) -> int:
        return self.width

    def logical_height(self) -> int:
        return self.height

    def clear(self, color: Color) -> None:
        self._background = color

    def draw_filled_rects(self, rects: Sequence[Rect], color: Color) -> None:
        self.frames.append((self._background, list(rects), color))

    def present(self) -> None:
        self.presented += 1

    def poll(self) -> bool:
        self.poll_count += 1
        return self.poll_count <= self.polls


class FakeGate:
    """Grants cycles following a fixed pattern, then always."""

    def __init__(self, pattern: Iterable[bool] = ()) -> None:
        self._pattern = list(pattern)
        self.calls = 0

    def tick(self) -> bool:
        self.calls += 1
        if self._pattern:
            return self._pattern.pop(0)
        return True


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def emulator() -> Emulator:
    return Emulator(seed=1234)


@pytest.fixture
def fake_surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
