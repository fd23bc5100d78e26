"""Configuration package."""

from cubekernel.config.settings import KernelSettings, UniverseRule, get_settings, load_settings

__all__ = [
    "KernelSettings",
    "UniverseRule",
    "get_settings",
    "load_settings",
]
