import pickle

import pytest
from pychip8.util.timer import ClockRegulator


def test_first_tick_is_granted(fake_clock):
    gate = ClockRegulator(1, clock=fake_clock)
    assert gate.tick()


def test_ticks_at_most_once_per_interval(fake_clock):
    gate = ClockRegulator(1, clock=fake_clock)
    assert gate.tick()
    assert not gate.tick()

    fake_clock.advance(0.0005)
    assert not gate.tick()

    fake_clock.advance(0.0006)
    assert gate.tick()
    assert not gate.tick()
    assert gate.ticks == 2


def test_late_tick_reschedules_from_now(fake_clock):
    gate = ClockRegulator(2, clock=fake_clock)
    gate.tick()
    fake_clock.advance(1.0)
    assert gate.tick()
    # No burst of catch-up ticks after a long stall.
    assert not gate.tick()
    fake_clock.advance(0.0025)
    assert gate.tick()


def test_zero_interval_always_ticks(fake_clock):
    gate = ClockRegulator(0, clock=fake_clock)
    assert all(gate.tick() for _ in range(5))


def test_negative_interval_rejected():
    with pytest.raises(ValueError):
        ClockRegulator(-1)


def test_reset(fake_clock):
    gate = ClockRegulator(5, clock=fake_clock)
    gate.tick()
    gate.reset()
    assert gate.ticks == 0
    assert gate.tick()


def test_pickle_drops_clock():
    gate = ClockRegulator(3)
    clone = pickle.loads(pickle.dumps(gate))
    assert clone.milliseconds_per_cycle == 3
    assert isinstance(clone.tick(), bool)
