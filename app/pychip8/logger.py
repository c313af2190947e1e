import logging
from typing import Final

# Handlers are installed by the application (see app/logger.py); the library only emits.
log: Final[logging.Logger] = logging.getLogger("PyChip8")
