"""
Engine configuration.

Settings are plain dataclass fields validated on construction. The
environment can supply them through ``EngineConfig.from_env``:

- ``H3SAFE_ENGINE``: ``auto`` (default), ``libh3`` or ``h3py``
- ``H3SAFE_LIBRARY``: explicit path to the libh3 shared library
- ``H3SAFE_MAX_BUFFER_CELLS``: cap on any single sized-output allocation
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional


ENGINE_CHOICES = ("auto", "libh3", "h3py")


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for selecting and constraining the native engine."""

    engine: str = "auto"
    """Which engine to use: auto, libh3 or h3py."""

    library_path: Optional[str] = None
    """Path to libh3; found with ctypes.util.find_library when unset."""

    max_buffer_cells: Optional[int] = None
    """Largest buffer the sized-output protocol may allocate (None = no cap)."""

    def __post_init__(self):
        if self.engine not in ENGINE_CHOICES:
            raise ValueError(
                f"engine must be one of {', '.join(ENGINE_CHOICES)}, got {self.engine!r}"
            )
        if self.max_buffer_cells is not None and self.max_buffer_cells < 1:
            raise ValueError("max_buffer_cells must be at least 1")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Validated EngineConfig
        """
        env = os.environ if environ is None else environ

        max_cells = env.get("H3SAFE_MAX_BUFFER_CELLS", "").strip()
        return cls(
            engine=env.get("H3SAFE_ENGINE", "auto").strip().lower() or "auto",
            library_path=env.get("H3SAFE_LIBRARY") or None,
            max_buffer_cells=int(max_cells) if max_cells else None,
        )
