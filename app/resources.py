from pathlib import Path
from typing import Final

root_path: Final[Path] = Path(".").resolve()
log_path: Final[Path] = root_path / "log"
config_file: Final[Path] = root_path / "config.toml"
