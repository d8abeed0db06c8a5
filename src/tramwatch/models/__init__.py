from __future__ import annotations

from tramwatch.models.config import AppSettings

__all__ = [
    "AppSettings",
]
