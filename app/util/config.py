from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, List, Mapping, MutableMapping, Optional, TypedDict

import tomllib
from pychip8.controller import KEY_LAYOUT
from pychip8.logger import log as _log
from resources import config_file


class GeneralConfig(TypedDict):
    cycle_ms: float
    scale: int
    margin: int


class KeyboardConfig(TypedDict):
    layout: List[str]


class EmulatorConfig(TypedDict):
    stack_depth: int
    wait_any_key: bool
    halt_on_unknown_opcode: bool


class Config(TypedDict):
    general: GeneralConfig
    keyboard: KeyboardConfig
    emulator: EmulatorConfig


DEFAULT_CONFIG: Config = {
    "general": {"cycle_ms": 1, "scale": 10, "margin": 0},
    # Physical key names for logical keys 0x0-0xF, in order.
    "keyboard": {"layout": list(KEY_LAYOUT)},
    "emulator": {"stack_depth": 16, "wait_any_key": True, "halt_on_unknown_opcode": False},
}


def _deep_merge(
    target: MutableMapping[str, Any],
    overrides: Mapping[str, Any],
) -> MutableMapping[str, Any]:
    for key, value in overrides.items():
        if isinstance(target.get(key), dict) and isinstance(value, dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value
    return target


def _validate_config(cfg: Config) -> None:
    general = cfg["general"]
    if isinstance(general["cycle_ms"], bool) or not isinstance(general["cycle_ms"], (int, float)) or general["cycle_ms"] < 0:
        raise ValueError("general.cycle_ms must be a non-negative number")

    if not isinstance(general["scale"], int) or general["scale"] <= 0:
        raise ValueError("general.scale must be a positive integer")

    if not isinstance(general["margin"], int) or not 0 <= general["margin"] < general["scale"]:
        raise ValueError("general.margin must be an integer between 0 and general.scale - 1")

    layout = cfg["keyboard"]["layout"]
    if not isinstance(layout, list) or len(layout) != 16 or not all(isinstance(k, str) and k for k in layout):
        raise ValueError("keyboard.layout must list 16 key names")
    if len({k.upper() for k in layout}) != 16:
        raise ValueError("keyboard.layout must not repeat a key")

    emulator = cfg["emulator"]
    if not isinstance(emulator["stack_depth"], int) or emulator["stack_depth"] <= 0:
        raise ValueError("emulator.stack_depth must be a positive integer")

    for flag in ("wait_any_key", "halt_on_unknown_opcode"):
        if not isinstance(emulator[flag], bool):  # type: ignore[literal-required]
            raise ValueError(f"emulator.{flag} must be a boolean")


def load_config(path: Optional[Path] = None) -> Config:
    """Read the TOML config, falling back to the defaults when it is missing or invalid."""
    path = config_file if path is None else path
    if not path.exists():
        return deepcopy(DEFAULT_CONFIG)

    config = deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)

        _deep_merge(config, data)  # type: ignore[arg-type]
        _validate_config(config)

    except (OSError, tomllib.TOMLDecodeError, ValueError, TypeError, KeyError) as e:
        _log.error(f"Failed to load config {path}: {e}; using defaults")
        return deepcopy(DEFAULT_CONFIG)

    return config
