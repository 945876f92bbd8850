"""isaexts: report the instruction set extensions a binary actually uses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from isaexts.version import __version__

if TYPE_CHECKING:
    from isaexts.config.models import IsaExtsConfig


@dataclass
class IsaExtsContext:
    """Dependency-injection container shared across CLI commands."""

    config: IsaExtsConfig | None = None

    def ensure_config(self) -> IsaExtsConfig:
        if self.config is None:
            from isaexts.config.loader import load_config

            self.config = load_config()
        return self.config


__all__ = ["IsaExtsContext", "__version__"]
