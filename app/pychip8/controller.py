from typing import Dict, Final, List, Mapping, Optional, Protocol, Sequence, Tuple

from bitarray import bitarray  # type: ignore

from pychip8.constants import KEY_COUNT

# Physical key names for logical keys 0x0-0xF, laid out as a 4x4 block:
#   1 2 3 4
#   Q W E R
#   A S D F
#   Z X C V
KEY_LAYOUT: Final[Tuple[str, ...]] = (
    "1", "2", "3", "4",
    "Q", "W", "E", "R",
    "A", "S", "D", "F",
    "Z", "X", "C", "V",
)


class InputCapability(Protocol):
    def is_pressed(self, key: int) -> bool: ...


class Keypad:
    """Pressed state of the 16 logical keys, plus the physical-name layout that feeds it."""

    def __init__(self, layout: Sequence[str] = KEY_LAYOUT) -> None:
        if len(layout) != KEY_COUNT:
            raise ValueError(f"Key layout must name {KEY_COUNT} keys, got {len(layout)}")
        self.layout: Final[Tuple[str, ...]] = tuple(name.upper() for name in layout)
        if len(set(self.layout)) != KEY_COUNT:
            raise ValueError("Key layout must not map two logical keys to the same physical key")
        self._keymap: Final[Dict[str, int]] = {name: key for key, name in enumerate(self.layout)}
        self._state = bitarray(KEY_COUNT)
        self._state.setall(0)

    @staticmethod
    def _check(key: int) -> int:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"Logical key out of range: {key}")
        return key

    def set(self, key: int, down: bool) -> None:
        self._state[self._check(key)] = bool(down)

    def press(self, key: int) -> None:
        self.set(key, True)

    def release(self, key: int) -> None:
        self.set(key, False)

    def update(self, keys: Mapping[int, bool]) -> None:
        for key, down in keys.items():
            self.set(key, down)

    def is_pressed(self, key: int) -> bool:
        return bool(self._state[key & 0xF])

    def pressed_keys(self) -> List[int]:
        return [key for key in range(KEY_COUNT) if self._state[key]]

    def logical_key(self, name: str) -> Optional[int]:
        """Translate a physical key name (e.g. ``"q"``) to its logical key, or None if unmapped."""
        return self._keymap.get(name.upper())

    def handle(self, name: str, down: bool) -> bool:
        """Apply a physical key event. Returns False if the key is not part of the layout."""
        key = self.logical_key(name)
        if key is None:
            return False
        self.set(key, down)
        return True

    def reset(self) -> None:
        self._state.setall(0)

    def to_int(self) -> int:
        """Key states as a 16-bit mask, bit n set when logical key n is held."""
        return sum(1 << key for key in self.pressed_keys())

    def __repr__(self) -> str:
        held = " ".join(f"{key:X}" for key in self.pressed_keys()) or "-"
        return f"<Keypad held={held}>"
