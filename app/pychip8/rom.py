from pathlib import Path
from typing import Final, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from returns.result import Failure, Result, Success

from pychip8.constants import MEMORY_SIZE, PROGRAM_START
from pychip8.logger import log


class Rom:
    """
    A CHIP-8 program image.

    The format is raw bytes with no header; the interpreter copies them into
    memory starting at ``LOAD_ADDRESS``. Images that would not fit below the
    end of memory are rejected instead of being truncated.
    """

    LOAD_ADDRESS: Final[int] = PROGRAM_START
    MAX_SIZE: Final[int] = MEMORY_SIZE - PROGRAM_START  # 3584 bytes

    def __init__(self) -> None:
        self.file: str = ""
        self.Data: NDArray[np.uint8] = np.zeros(0, dtype=np.uint8)

    def __repr__(self) -> str:
        return f"<Rom file={self.file!r} size={len(self.Data)} bytes>"

    def __len__(self) -> int:
        return len(self.Data)

    def to_bytes(self) -> bytes:
        return self.Data.tobytes()

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray]) -> Result["Rom", str]:
        """
        Validate a program image.

        Args:
            data: Raw bytes of the program

        Returns:
            Result containing either a Rom instance or an error string.
        """
        if not isinstance(data, (bytes, bytearray)):
            return Failure(f"Expected bytes or bytearray, got {type(data).__name__}")

        if len(data) > cls.MAX_SIZE:
            return Failure(
                f"Program too large: {len(data)} bytes, at most {cls.MAX_SIZE} fit from 0x{cls.LOAD_ADDRESS:03X}"
            )

        if len(data) % 2:
            log.debug(f"Program has odd length ({len(data)} bytes); last instruction is incomplete")

        obj = cls()
        obj.Data = np.frombuffer(bytes(data), dtype=np.uint8).copy()
        return Success(obj)

    @classmethod
    def is_valid_file(cls, filepath: Union[Path, str]) -> Tuple[bool, Optional[str]]:
        """
        Check if a file is a loadable program image.

        Returns:
            (is_valid, error_message); error_message is None when valid.
        """
        result = cls.from_file(filepath)
        if isinstance(result, Success):
            return True, None
        return False, result.failure()

    @classmethod
    def from_file(cls, filepath: Union[Path, str]) -> Result["Rom", str]:
        """
        Load a program image from a file path.

        Returns:
            Result containing either a Rom instance or an error string.
        """
        try:
            with open(filepath, "rb") as f:
                data = f.read()
        except OSError as e:
            return Failure(f"Failed to read file {filepath}: {e}")

        def attach_file(rom: "Rom") -> "Rom":
            rom.file = str(filepath)
            return rom

        return cls.from_bytes(data).map(attach_file)

    @classmethod
    def Empty(cls) -> "Rom":
        """A program image with no bytes; memory above 0x200 stays zeroed."""
        return cls()
