"""A proof kernel for cubical type theory with smooth paths."""

from loguru import logger

from cubekernel.config import KernelSettings, get_settings, load_settings
from cubekernel.core.context import Context
from cubekernel.core.errors import KernelError
from cubekernel.kernel import check, convertible, evaluate, infer, normalize
from cubekernel.logging_utils import configure_logging

logger.disable("cubekernel")

__all__ = [
    "Context",
    "KernelError",
    "KernelSettings",
    "check",
    "configure_logging",
    "convertible",
    "evaluate",
    "get_settings",
    "infer",
    "load_settings",
    "normalize",
]
__version__ = "0.1.0"
