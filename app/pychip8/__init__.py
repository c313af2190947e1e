from pychip8.emulator import Emulator, EmulatorError, EngineState, Quirks
from pychip8.rom import Rom

__all__ = ["Emulator", "EmulatorError", "EngineState", "Quirks", "Rom"]
