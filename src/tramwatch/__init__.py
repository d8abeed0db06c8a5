"""tramwatch: live dashboard for a tram fleet telemetry feed."""

from __future__ import annotations

__version__ = "0.1.0"
