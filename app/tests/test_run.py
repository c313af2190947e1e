from conftest import FakeGate, FakeSurface, make_emulator
from pychip8.emulator import EngineState
from pychip8.render import Rect

GLYPH_ZERO_LOOP = bytes.fromhex("A0 50 F0 29 D0 05 12 06")


def test_run_until_surface_stops():
    emu = make_emulator(GLYPH_ZERO_LOOP)
    surface = FakeSurface(polls=5)

    cycles = emu.Run(surface, FakeGate())

    assert cycles == 5
    assert emu.state is EngineState.TERMINATED
    assert surface.poll_count == 6


def test_run_flushes_only_after_draw():
    emu = make_emulator(GLYPH_ZERO_LOOP)
    surface = FakeSurface(polls=10)

    emu.Run(surface, FakeGate())

    assert len(surface.frames) == 1
    background, rects, foreground = surface.frames[0]
    assert len(rects) == 14
    assert rects[0] == Rect(0, 0, 10, 10)
    assert surface.presented == 1


def test_run_skips_cycles_the_gate_withholds():
    emu = make_emulator(GLYPH_ZERO_LOOP)
    surface = FakeSurface(polls=4)
    gate = FakeGate([False, True, False, True])

    cycles = emu.Run(surface, gate)

    assert cycles == 2
    assert gate.calls == 4
    assert emu.Architecture.ProgramCounter == 0x204


def test_run_passes_margin_to_scaling():
    emu = make_emulator(GLYPH_ZERO_LOOP)
    surface = FakeSurface(polls=3)

    emu.Run(surface, FakeGate(), margin=2)

    _, rects, _ = surface.frames[0]
    assert rects[0] == Rect(0, 0, 10, 8)


def test_terminated_is_absorbing():
    emu = make_emulator(GLYPH_ZERO_LOOP)
    emu.Run(FakeSurface(polls=1), FakeGate())
    pc = emu.Architecture.ProgramCounter

    assert emu.Step() is False
    assert emu.Architecture.ProgramCounter == pc
    assert emu.Run(FakeSurface(polls=5), FakeGate()) == 1


def test_reset_after_terminate_runs_again():
    emu = make_emulator(GLYPH_ZERO_LOOP)
    emu.Run(FakeSurface(polls=1), FakeGate())
    emu.Reset()
    assert emu.state is EngineState.RUNNING
    assert emu.Run(FakeSurface(polls=3), FakeGate()) == 3
