from __future__ import annotations

from wb.config.models import RunConfig, TargetConfig, Verbosity

__all__ = [
    "RunConfig",
    "TargetConfig",
    "Verbosity",
]
