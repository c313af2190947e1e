import time
from typing import Any, Callable, Protocol


class TimingGate(Protocol):
    def tick(self) -> bool: ...


class ClockRegulator:
    """
    Paces the emulator to roughly the speed the original interpreters ran at.

    ``tick`` returns True at most once every ``milliseconds_per_cycle`` and
    should be called once per iteration of the main loop; when it returns
    False the loop skips the cycle body.

        while surface.poll():
            if not regulator.tick():
                continue
            emulator.Step()
    """

    def __init__(self, milliseconds_per_cycle: float = 1, clock: Callable[[], float] = time.perf_counter) -> None:
        if milliseconds_per_cycle < 0:
            raise ValueError("milliseconds_per_cycle must not be negative")
        self.milliseconds_per_cycle: float = milliseconds_per_cycle
        self._clock = clock  # High-resolution monotonic clock
        self._interval: float = milliseconds_per_cycle / 1000.0
        self.ready_at: float = self._clock()
        self.ticks: int = 0

    def tick(self) -> bool:
        now = self._clock()
        # Once the deadline passes, schedule the next one a full interval from now.
        if now >= self.ready_at:
            self.ready_at = now + self._interval
            self.ticks += 1
            return True
        return False

    def reset(self) -> None:
        self.ready_at = self._clock()
        self.ticks = 0

    def __repr__(self) -> str:
        return f"ClockRegulator(milliseconds_per_cycle={self.milliseconds_per_cycle}, ticks={self.ticks})"

    def __getstate__(self) -> dict:
        """Custom state for pickling — exclude the clock reference."""
        state = self.__dict__.copy()
        state.pop("_clock", None)
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        self.__dict__.update(state)
        self._clock = time.perf_counter
