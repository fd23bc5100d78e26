"""Kernel settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

UniverseRule = Literal["max", "cumulative"]


class KernelSettings(BaseSettings):
    """Evaluation guards and typing-rule choices."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CUBEKERNEL_",
        case_sensitive=False,
        extra="ignore",
    )

    max_depth: int = Field(default=200, ge=1)
    fuel: int = Field(default=1_000_000, ge=1)
    universe_rule: UniverseRule = Field(default="max")
    max_smooth_order: int = Field(default=1000, ge=0)
    check_face_agreement: bool = Field(default=True)

    @property
    def cumulative(self) -> bool:
        return self.universe_rule == "cumulative"


def load_settings(**overrides: Any) -> KernelSettings:
    """Load settings from the environment, with keyword overrides."""
    return KernelSettings(**overrides)


@lru_cache(maxsize=1)
def get_settings() -> KernelSettings:
    """Process-wide default settings, read once."""
    return load_settings()
