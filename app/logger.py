import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Final, List, Union

from resources import log_path
from rich.console import Console
from rich.logging import RichHandler

console: Final[Console] = Console()


log_root: Final[Path] = log_path
log_root.mkdir(exist_ok=True)


class Chip8FileHandler(logging.Handler):
    """Appends formatted records to a log file, retrying records that failed to write earlier."""

    def __init__(self, file_name: Union[str, Path]):
        super().__init__()
        self._file_name = Path(file_name)
        self._log_hold: List[logging.LogRecord] = []

    def _write_log_entry(self, log_entry: str) -> None:
        with open(self._file_name, "a", encoding="utf-8") as f:
            f.write(log_entry + "\n")

    def emit(self, record: logging.LogRecord) -> None:
        self.acquire()
        try:
            pending = self._log_hold + [record]
            self._log_hold = []
            for held in pending:
                try:
                    self._write_log_entry(self.format(held))
                except OSError:
                    self._log_hold.append(held)  # keep for the next emit
        finally:
            self.release()


debug_mode: Final[bool] = "--debug" in sys.argv

level: Final[int] = logging.DEBUG if debug_mode else logging.INFO
time_format: Final[str] = "%Y-%m-%d %H:%M:%S"


def get_time() -> str:
    return datetime.now().strftime("%Y-%m-%d_%H-%M-%S")


file_handler: Final[Chip8FileHandler] = Chip8FileHandler(log_root / f"pychip8_{get_time()}.log")
file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", time_format))

logging.basicConfig(
    level=level,
    format="%(message)s",
    datefmt=time_format,
    handlers=[
        RichHandler(
            rich_tracebacks=True,
            show_path=debug_mode,
            tracebacks_show_locals=debug_mode,
            console=console,
        ),
        file_handler,
    ],
)
log: Final[logging.Logger] = logging.getLogger("PyChip8")
