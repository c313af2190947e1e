import array
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from string import Template
from typing import Any, Callable, Dict, Final, Mapping, Optional, Sequence, Tuple, Type, Union

import numpy as np
from numpy.typing import NDArray

from pychip8.constants import (
    DEFAULT_STACK_DEPTH,
    FONT_ADDRESS,
    GLYPH_HEIGHT,
    KEY_COUNT,
    MEMORY_SIZE,
    PROGRAM_START,
    REGISTER_COUNT,
)
from pychip8.controller import InputCapability, Keypad
from pychip8.display import Display
from pychip8.font import DEFAULT_FONT
from pychip8.logger import log as _logger
from pychip8.render import RenderSurface, flush
from pychip8.rom import Rom
from pychip8.util.timer import TimingGate

# Template
TEMPLATE: Final[Template] = Template("${PC}: opcode: ${OP} | V: ${V} | I: ${I} | DT: ${DT} | SP: ${SP}")


class EmulatorError(BaseException):
    def __init__(self, exception: BaseException):
        self.original: Final[BaseException] = exception
        self.exception: Final[Type[BaseException]] = type(exception)
        self.message: Final[str] = str(exception)
        super().__init__(self.message)


class EngineState(Enum):
    RUNNING = 0
    AWAITING_KEY = 1
    TERMINATED = 2


@dataclass
class HaltOn:
    UnknownOpcode: bool = False


@dataclass
class Debug:
    Logging: bool = False
    HaltOn: HaltOn = field(default_factory=HaltOn)


@dataclass(frozen=True)
class Quirks:
    """
    Behaviours that differ between historical interpreters.

    wait_any_key: FX0A resumes on any of the 16 keys and stores the lowest
        pressed one. When False only key 0 is watched and VX is set to 0,
        as the earliest interpreters did.
    """

    wait_any_key: bool = True


@dataclass
class Architecture:
    V: array.array = field(default_factory=lambda: array.array("B", [0] * REGISTER_COUNT))
    I: int = 0
    ProgramCounter: int = PROGRAM_START
    DelayTimer: int = 0
    Stack: deque[int] = field(default_factory=deque)
    Cycles: int = 0
    OpCode: int = 0
    State: EngineState = EngineState.RUNNING
    WaitRegister: int = 0  # X of the FX0A being serviced while AWAITING_KEY
    Drew: bool = False  # set when the last cycle executed DXYN


@dataclass
class EmulatorMemory:
    RAM: NDArray[np.uint8] = field(default_factory=lambda: np.zeros(MEMORY_SIZE, dtype=np.uint8))

    def read(self, address: int) -> int:
        """Read one byte; addresses wrap at the 12-bit boundary."""
        return int(self.RAM[address & 0xFFF])

    def write(self, address: int, value: int) -> None:
        self.RAM[address & 0xFFF] = value & 0xFF

    def load(self, address: int, data: Union[bytes, Sequence[int]]) -> None:
        """Copy ``data`` to ``address``. Raises instead of truncating at the end of memory."""
        end = address + len(data)
        if end > len(self.RAM):
            raise EmulatorError(
                MemoryError(f"{len(data)} bytes at 0x{address:03X} overrun memory by {end - len(self.RAM)} bytes")
            )
        self.RAM[address:end] = np.frombuffer(bytes(data), dtype=np.uint8)

    def clear(self) -> None:
        self.RAM.fill(0)

    def copy(self) -> "EmulatorMemory":
        """
        Create a copy of the emulator memory.
        """
        return EmulatorMemory(self.RAM.copy())


class _HelperTool:
    """Opcode field extraction; every instruction is 0xTXYN / 0xTXNN / 0xTNNN."""

    @staticmethod
    def X(opcode: int) -> int:
        return (opcode & 0x0F00) >> 8

    @staticmethod
    def Y(opcode: int) -> int:
        return (opcode & 0x00F0) >> 4

    @staticmethod
    def N(opcode: int) -> int:
        return opcode & 0x000F

    @staticmethod
    def NN(opcode: int) -> int:
        return opcode & 0x00FF

    @staticmethod
    def NNN(opcode: int) -> int:
        return opcode & 0x0FFF


class Emulator:
    """
    PyChip8 is an object-oriented CHIP-8 interpreter.

    Memory, the register file and the display buffer are created once here
    and mutated in place, one instruction at a time. The font and the input
    capability are injected so tests can substitute them. Presentation and
    pacing are left to collaborators passed to ``Run``.
    """

    def __init__(
        self,
        font: Sequence[int] = DEFAULT_FONT,
        font_address: int = FONT_ADDRESS,
        keypad: Optional[InputCapability] = None,
        quirks: Quirks = Quirks(),
        stack_depth: int = DEFAULT_STACK_DEPTH,
        seed: Optional[int] = None,
    ) -> None:
        if len(font) != 16 * GLYPH_HEIGHT:
            raise EmulatorError(ValueError(f"Font must hold 16 glyphs of {GLYPH_HEIGHT} bytes, got {len(font)} bytes"))
        if font_address + len(font) > PROGRAM_START:
            raise EmulatorError(ValueError(f"Font at 0x{font_address:03X} would overlap the program area"))
        if stack_depth <= 0:
            raise EmulatorError(ValueError("stack_depth must be positive"))

        self.font: Final[Tuple[int, ...]] = tuple(font)
        self.font_address: Final[int] = font_address
        self.keypad: InputCapability = keypad if keypad is not None else Keypad()
        self.quirks: Final[Quirks] = quirks
        self.stack_depth: Final[int] = stack_depth
        self.rom: Rom = Rom.Empty()
        self.debug: Debug = Debug()
        self.tracelog: deque[str] = deque(maxlen=2024)
        self._events: Dict[str, deque[Callable[..., Any]]] = {}
        self._rng: np.random.Generator = np.random.default_rng(seed)
        self._memory: EmulatorMemory = EmulatorMemory()
        self.display: Final[Display] = Display()
        self.Architecture: Architecture = Architecture()

        self._families: Final[Dict[int, Callable[[int], None]]] = {
            0x0: self._do_op_system,
            0x1: self._do_op_JP,
            0x2: self._do_op_CALL,
            0x3: self._do_op_SE_byte,
            0x4: self._do_op_SNE_byte,
            0x5: self._do_op_SE_reg,
            0x6: self._do_op_LD_byte,
            0x7: self._do_op_ADD_byte,
            0x8: self._do_op_ALU,
            0x9: self._do_op_SNE_reg,
            0xA: self._do_op_LD_I,
            0xB: self._do_op_JP_V0,
            0xC: self._do_op_RND,
            0xD: self._do_op_DRW,
            0xE: self._do_op_SKP,
            0xF: self._do_op_misc,
        }

        self.Reset()

    @property
    def getMemory(self) -> EmulatorMemory:
        """
        Returns a copy of the emulator's memory.
        """
        return self._memory.copy()

    @property
    def state(self) -> EngineState:
        return self.Architecture.State

    def _tracelogger(self, OpCode: int) -> None:
        arch = self.Architecture
        line = TEMPLATE.substitute(
            PC=f"{arch.ProgramCounter:04X}",
            OP=f"{OpCode:04X}",
            V=" ".join(f"{v:02X}" for v in arch.V),
            I=f"{arch.I:04X}",
            DT=f"{arch.DelayTimer:02X}",
            SP=f"{len(arch.Stack):02d}",
        )

        self.tracelog.append(line)

    def on(self, event_name: str):
        def decorator(func: Callable):
            self._events.setdefault(event_name, deque()).append(func)
            return func

        return decorator

    def _emit(self, event_name: str, *args: Any, **kwargs: Any) -> None:
        """Emit an event to all registered callbacks."""
        callbacks = self._events.get(event_name)
        if not callbacks:
            return

        for callback in callbacks:
            if not callable(callback):
                raise EmulatorError(ValueError(f"Callback {callback} is not Callable"))
            callback(*args, **kwargs)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def Reset(self) -> None:
        """Return to power-on state: font and loaded program in memory, everything else zeroed."""
        self.Architecture = Architecture()
        self.display.clear()
        self._memory.clear()
        self._memory.load(self.font_address, self.font)
        self._memory.load(Rom.LOAD_ADDRESS, self.rom.to_bytes())
        self.tracelog.clear()

    def Load(self, rom: Rom) -> None:
        """
        Copy a program image into memory at 0x200 and reset the machine.

        :param rom: Rom object to run
        :type rom: Rom
        """
        if not isinstance(rom, Rom):
            raise EmulatorError(ValueError("Invalid rom object provided."))
        if len(rom) > Rom.MAX_SIZE:
            raise EmulatorError(MemoryError(f"Program of {len(rom)} bytes does not fit in memory"))

        self.rom = rom
        self.Reset()
        _logger.info(f"Loaded {len(rom)} bytes at 0x{Rom.LOAD_ADDRESS:03X}" + (f" from {rom.file}" if rom.file else ""))

    def Input(self, keys: Mapping[int, bool]) -> None:
        """Update the state of logical keys (0x0-0xF, True = held)."""
        if not isinstance(self.keypad, Keypad):
            raise EmulatorError(TypeError("Input() needs the built-in Keypad; update your input capability directly."))
        invalid = [key for key in keys if not 0 <= key < KEY_COUNT]
        if invalid:
            raise EmulatorError(ValueError(f"Invalid key codes {invalid}. Must be 0x0-0xF."))
        self.keypad.update(keys)

    # ------------------------------------------------------------------ #
    # Main loop
    # ------------------------------------------------------------------ #

    def Step(self) -> bool:
        """
        Run one cycle granted by the timing gate.

        Decrements the delay timer, then executes one instruction (or
        services a pending FX0A key wait). Returns True if the cycle drew to
        the display buffer.
        """
        arch = self.Architecture
        if arch.State is EngineState.TERMINATED:
            return False

        try:
            self._emit("before_cycle", arch.Cycles)

            if arch.DelayTimer > 0:
                arch.DelayTimer -= 1

            arch.Drew = False
            if arch.State is EngineState.AWAITING_KEY:
                self._do_key_wait(arch.WaitRegister)
            else:
                self._emulate_CPU()

            arch.Cycles += 1
            self._emit("after_cycle", arch.Cycles)

        except Exception as e:
            raise EmulatorError(e) from e

        return arch.Drew

    def Run(self, surface: RenderSurface, gate: TimingGate, margin: int = 0) -> int:
        """
        Drive the machine until ``surface`` asks to stop.

        Each iteration polls the surface, asks the gate for a cycle and, when
        the cycle drew, flushes the display buffer to the surface. Returns
        the number of cycles executed.
        """
        arch = self.Architecture
        _logger.debug("Entering main loop")

        while arch.State is not EngineState.TERMINATED:
            if not surface.poll():
                self.Terminate()
                break

            if not gate.tick():
                continue

            if self.Step():
                flush(surface, self.display.lit_pixels(), margin=margin)

        _logger.debug(f"Main loop finished after {arch.Cycles} cycles")
        return arch.Cycles

    def Terminate(self) -> None:
        self.Architecture.State = EngineState.TERMINATED

    def _emulate_CPU(self) -> None:
        arch = self.Architecture
        pc = arch.ProgramCounter

        # Instructions are two bytes, big-endian.
        opcode = (self._memory.read(pc) << 8) | self._memory.read(pc + 1)
        arch.OpCode = opcode

        if self.debug.Logging:
            self._tracelogger(opcode)
            self._emit("tracelogger", self.tracelog[-1])

        arch.ProgramCounter = (pc + 2) & 0xFFFF
        self._families[opcode >> 12](opcode)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _do_unknown_opcode(self, opcode: int) -> None:
        pc = (self.Architecture.ProgramCounter - 2) & 0xFFFF
        if self.debug.HaltOn.UnknownOpcode:
            raise EmulatorError(NotImplementedError(f"Unknown opcode {opcode:04X} at {pc:04X}"))
        _logger.warning(f"Unknown opcode {opcode:04X} at {pc:04X}")

    def _do_skip(self, condition: bool) -> None:
        if condition:
            self.Architecture.ProgramCounter = (self.Architecture.ProgramCounter + 2) & 0xFFFF

    def _do_push(self, Value: int) -> None:
        stack = self.Architecture.Stack
        if len(stack) >= self.stack_depth:
            raise EmulatorError(OverflowError(f"Call stack overflow: depth limit {self.stack_depth} reached"))
        stack.append(Value & 0xFFFF)

    def _do_pop(self) -> int:
        stack = self.Architecture.Stack
        if not stack:
            raise EmulatorError(IndexError("Return with an empty call stack"))
        return stack.pop()

    def _do_add(self, a: int, b: int) -> int:
        self.Architecture.V[0xF] = int(a + b > 0xFF)
        return (a + b) & 0xFF

    def _do_subtract(self, a: int, b: int) -> int:
        self.Architecture.V[0xF] = int(a >= b)
        return (a - b) & 0xFF

    def _do_find_pressed_key(self) -> Optional[int]:
        watched = range(KEY_COUNT) if self.quirks.wait_any_key else (0,)
        for key in watched:
            if self.keypad.is_pressed(key):
                return key
        return None

    def _do_key_wait(self, register: int) -> None:
        arch = self.Architecture
        key = self._do_find_pressed_key()
        if key is None:
            if arch.State is not EngineState.AWAITING_KEY:
                _logger.debug(f"Waiting for key press into V{register:X}")
            arch.State = EngineState.AWAITING_KEY
            arch.WaitRegister = register
            return

        arch.V[register] = key
        arch.State = EngineState.RUNNING

    # ------------------------------------------------------------------ #
    # Instruction families
    # ------------------------------------------------------------------ #

    def _do_op_system(self, opcode: int) -> None:
        # 00E0 and 00EE are told apart by the low nibble.
        selector = _HelperTool.N(opcode)
        if selector == 0x0:
            self.display.clear()
        elif selector == 0xE:
            self.Architecture.ProgramCounter = self._do_pop()
        else:
            self._do_unknown_opcode(opcode)

    def _do_op_JP(self, opcode: int) -> None:
        self.Architecture.ProgramCounter = _HelperTool.NNN(opcode)

    def _do_op_CALL(self, opcode: int) -> None:
        self._do_push(self.Architecture.ProgramCounter)
        self.Architecture.ProgramCounter = _HelperTool.NNN(opcode)

    def _do_op_SE_byte(self, opcode: int) -> None:
        self._do_skip(self.Architecture.V[_HelperTool.X(opcode)] == _HelperTool.NN(opcode))

    def _do_op_SNE_byte(self, opcode: int) -> None:
        self._do_skip(self.Architecture.V[_HelperTool.X(opcode)] != _HelperTool.NN(opcode))

    def _do_op_SE_reg(self, opcode: int) -> None:
        if _HelperTool.N(opcode) != 0:
            self._do_unknown_opcode(opcode)
            return
        V = self.Architecture.V
        self._do_skip(V[_HelperTool.X(opcode)] == V[_HelperTool.Y(opcode)])

    def _do_op_LD_byte(self, opcode: int) -> None:
        self.Architecture.V[_HelperTool.X(opcode)] = _HelperTool.NN(opcode)

    def _do_op_ADD_byte(self, opcode: int) -> None:
        # No carry flag for this form.
        x = _HelperTool.X(opcode)
        V = self.Architecture.V
        V[x] = (V[x] + _HelperTool.NN(opcode)) & 0xFF

    def _do_op_ALU(self, opcode: int) -> None:
        V = self.Architecture.V
        x = _HelperTool.X(opcode)
        vx = V[x]
        vy = V[_HelperTool.Y(opcode)]
        selector = _HelperTool.N(opcode)

        if selector == 0x0:
            V[x] = vy
        elif selector == 0x1:
            V[x] = vx | vy
        elif selector == 0x2:
            V[x] = vx & vy
        elif selector == 0x3:
            V[x] = vx ^ vy
        elif selector == 0x4:
            V[x] = self._do_add(vx, vy)
        elif selector == 0x5:
            V[x] = self._do_subtract(vx, vy)
        elif selector == 0x6:
            # VF is left alone by both shifts.
            V[x] = vx >> 1
        elif selector == 0x7:
            V[x] = self._do_subtract(vy, vx)
        elif selector == 0xE:
            V[x] = (vx << 1) & 0xFF
        else:
            self._do_unknown_opcode(opcode)

    def _do_op_SNE_reg(self, opcode: int) -> None:
        if _HelperTool.N(opcode) != 0:
            self._do_unknown_opcode(opcode)
            return
        V = self.Architecture.V
        self._do_skip(V[_HelperTool.X(opcode)] != V[_HelperTool.Y(opcode)])

    def _do_op_LD_I(self, opcode: int) -> None:
        self.Architecture.I = _HelperTool.NNN(opcode)

    def _do_op_JP_V0(self, opcode: int) -> None:
        # Always offset by V0, never by the register named in the high nibble of NNN.
        self.Architecture.ProgramCounter = (_HelperTool.NNN(opcode) + self.Architecture.V[0]) & 0xFFFF

    def _do_op_RND(self, opcode: int) -> None:
        value = int(self._rng.integers(0, 0x100))
        self.Architecture.V[_HelperTool.X(opcode)] = value & _HelperTool.NN(opcode)

    def _do_op_DRW(self, opcode: int) -> None:
        arch = self.Architecture
        V = arch.V
        x = V[_HelperTool.X(opcode)]
        y = V[_HelperTool.Y(opcode)]
        sprite = [self._memory.read(arch.I + offset) for offset in range(_HelperTool.N(opcode))]

        V[0xF] = 0
        if self.display.draw_sprite(x, y, sprite):
            V[0xF] = 1

        arch.Drew = True
        self._emit("frame_complete", self.display.lit_pixels())

    def _do_op_SKP(self, opcode: int) -> None:
        key = self.Architecture.V[_HelperTool.X(opcode)] & 0xF
        selector = _HelperTool.NN(opcode)
        if selector == 0x9E:
            self._do_skip(self.keypad.is_pressed(key))
        elif selector == 0xA1:
            self._do_skip(not self.keypad.is_pressed(key))
        else:
            self._do_unknown_opcode(opcode)

    def _do_op_misc(self, opcode: int) -> None:
        arch = self.Architecture
        V = arch.V
        x = _HelperTool.X(opcode)
        selector = _HelperTool.NN(opcode)

        if selector == 0x07:
            V[x] = arch.DelayTimer
        elif selector == 0x0A:
            self._do_key_wait(x)
        elif selector == 0x15:
            arch.DelayTimer = V[x]
        elif selector == 0x18:
            # Fire-and-forget; nothing in the machine changes.
            self._emit("beep")
        elif selector == 0x1E:
            arch.I = (arch.I + V[x]) & 0xFFFF
        elif selector == 0x29:
            arch.I = self.font_address + (V[x] & 0xF) * GLYPH_HEIGHT
        elif selector == 0x33:
            value = V[x]
            self._memory.write(arch.I, value // 100)
            self._memory.write(arch.I + 1, (value % 100) // 10)
            self._memory.write(arch.I + 2, value % 10)
        elif selector == 0x55:
            for i in range(x + 1):
                self._memory.write(arch.I + i, V[i])
        elif selector == 0x65:
            for i in range(x + 1):
                V[i] = self._memory.read(arch.I + i)
        else:
            self._do_unknown_opcode(opcode)
