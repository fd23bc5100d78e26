"""Logging helpers.

The kernel logs through loguru under the ``cubekernel`` name and is
disabled on import. Host applications opt in with ``configure_logging``.
"""

from __future__ import annotations

import os
import sys
from logging import Handler
from typing import Any, Literal

from loguru import logger
from rich.logging import RichHandler

LogProfile = Literal["default", "console"]

_DEFAULT_FORMAT = "{time:HH:mm:ss.SSS} | {level:<6} | {name}:{line} | {message}"
_CONFIGURED_PROFILE: LogProfile | None = None


def _build_console_handler() -> Handler:
    # Rich renders its own level column
    return RichHandler(show_time=False, show_path=False)


def _parse_log_filter() -> tuple[str, dict[str | None, str | bool]]:
    """Parse CUBEKERNEL_LOG_FILTER env var.

    Format: "level" or "level,module=level,module=false", e.g.
    "debug,cubekernel.eval.kan=false" traces evaluation but silences Kan
    operations.

    Returns:
        (global_level, module_filter_dict)
    """
    global_level = "info"
    modules: dict[str | None, str | bool] = {}
    for part in os.getenv("CUBEKERNEL_LOG_FILTER", "info").lower().split(","):
        part = part.strip()
        if not part:
            continue
        if "=" not in part:
            global_level = part
            continue
        module, level = (piece.strip() for piece in part.split("=", 1))
        modules[module] = False if level == "false" else level.upper()
    return global_level, modules


def configure_logging(*, profile: LogProfile = "default") -> None:
    """Install one loguru sink for the process and enable kernel records.

    ``"console"`` routes records through rich; ``"default"`` writes plain
    lines to stderr. Calling again with the same profile is a no-op.
    """
    global _CONFIGURED_PROFILE
    if profile == _CONFIGURED_PROFILE:
        return

    level, modules = _parse_log_filter()
    sink: Any = _build_console_handler() if profile == "console" else sys.stderr
    logger.remove()
    logger.add(
        sink,
        level=level.upper(),
        format="{message}" if profile == "console" else _DEFAULT_FORMAT,
        filter=modules,
        backtrace=False,
        diagnose=False,
    )
    logger.enable("cubekernel")
    _CONFIGURED_PROFILE = profile
