# Shared utilities for the solver and its driver scripts. Explicit re-exports for a clean public API.

from .io import (
    ensure_dir as ensure_dir,
    load_config as load_config,
    load_json as load_json,
    load_yaml as load_yaml,
    save_json as save_json,
    save_yaml as save_yaml,
)
from .timers import Timer as Timer, timed as timed

__all__ = [
    "ensure_dir",
    "load_config",
    "load_json",
    "load_yaml",
    "save_json",
    "save_yaml",
    "Timer",
    "timed",
]
