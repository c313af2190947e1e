#!/usr/bin/env python3
import sys
from os import environ
from pathlib import Path
from typing import List

environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

from __version__ import __version_string__ as __version__
from backend.controller import Controller
from backend.render.surface import PygameSurface
from logger import console, debug_mode
from logger import log as _log
from pychip8.controller import Keypad
from pychip8.emulator import Emulator, EmulatorError, Quirks
from pychip8.rom import Rom
from pychip8.util.timer import ClockRegulator
from returns.result import Failure
from rich import box
from rich.panel import Panel
from rich.table import Table
from rich.traceback import install
from util.config import load_config

install(show_locals=debug_mode)  # for cool traceback


def _usage(program: str) -> None:
    console.print(f"[bold]Usage:[/bold] {program} <rom file> [--debug]")


def _print_controls(layout: List[str]) -> None:
    table = Table(title="Keypad", box=box.ROUNDED, border_style="cyan")
    for _ in range(4):
        table.add_column(justify="center")
    for row in range(4):
        table.add_row(*(f"{layout[row * 4 + col].upper()} → {row * 4 + col:X}" for col in range(4)))
    console.print(table)
    console.print("[dim]ESC or closing the window quits.[/dim]")


def main(argv: List[str]) -> int:
    args = [arg for arg in argv[1:] if not arg.startswith("--")]
    if not args:
        _usage(Path(argv[0]).name)
        return 1

    cfg = load_config()
    rom_path = Path(args[0])

    result = Rom.from_file(rom_path)
    if isinstance(result, Failure):
        _log.error(result.failure())
        return 1
    rom = result.unwrap()

    keypad = Keypad(cfg["keyboard"]["layout"])
    emulator = Emulator(
        keypad=keypad,
        quirks=Quirks(wait_any_key=cfg["emulator"]["wait_any_key"]),
        stack_depth=cfg["emulator"]["stack_depth"],
    )
    emulator.debug.Logging = debug_mode
    emulator.debug.HaltOn.UnknownOpcode = cfg["emulator"]["halt_on_unknown_opcode"]

    @emulator.on("beep")
    def beep() -> None:
        console.bell()

    @emulator.on("tracelogger")
    def trace(line: str) -> None:
        _log.debug(line)

    console.print(Panel.fit(f"[bold cyan]PyChip8 [red]{__version__}[/red][/]", border_style="bright_blue"))
    console.print(f"[green]Loaded:[/green] {rom_path} ({len(rom)} bytes)\n")
    _print_controls(list(keypad.layout))

    emulator.Load(rom)
    surface = PygameSurface(f"PyChip8 - {rom_path.name}", Controller(keypad), scale=cfg["general"]["scale"])
    gate = ClockRegulator(milliseconds_per_cycle=cfg["general"]["cycle_ms"])

    try:
        cycles = emulator.Run(surface, gate, margin=cfg["general"]["margin"])
    except EmulatorError as e:
        arch = emulator.Architecture
        _log.error(
            f"{e.exception.__name__}: {e.message} (PC={arch.ProgramCounter:04X} opcode={arch.OpCode:04X})",
            exc_info=(type(e.original), e.original, e.original.__traceback__),
        )
        return 1
    finally:
        surface.close()

    console.print(f"\n[bold cyan]Emulator closed.[/bold cyan] Ran [green]{cycles}[/green] cycles.")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
