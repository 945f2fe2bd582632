"""Enumerations shared by the CLI and the persisted preferences."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional


def _expand(path: Optional[str]) -> Optional[Path]:
    if path is None:
        return None
    return Path(path).expanduser().resolve()


class _Choice(str, Enum):
    """Enum whose value is the spelling used on disk and on the command line."""

    def __str__(self) -> str:
        return self.value

    @classmethod
    def choices(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def default(cls) -> "_Choice":
        raise NotImplementedError


class GraphicsBackend(_Choice):
    """Rendering API used by the player window."""

    DEFAULT = "default"
    VULKAN = "vulkan"
    METAL = "metal"
    DX12 = "dx12"
    GL = "gl"

    @classmethod
    def default(cls) -> "GraphicsBackend":
        return cls.DEFAULT


class PowerPreference(_Choice):
    """Which GPU to prefer on machines with more than one."""

    LOW = "low"
    HIGH = "high"

    @classmethod
    def default(cls) -> "PowerPreference":
        return cls.HIGH


__all__ = ["GraphicsBackend", "PowerPreference"]
