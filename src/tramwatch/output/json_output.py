"""JSON renderings: one compact line per snapshot, an envelope for fatal errors."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tramwatch.fleet.state import FleetSnapshot


def snapshot_to_dict(snapshot: FleetSnapshot) -> dict[str, Any]:
    return {
        "sequence": snapshot.sequence,
        "taken_at": snapshot.taken_at.isoformat(),
        "changed": snapshot.changed,
        "trams": [tram.model_dump() for tram in snapshot],
    }


def format_snapshot_line(snapshot: FleetSnapshot) -> str:
    """Return *snapshot* as a single compact JSON line (JSONL output)."""
    return json.dumps(snapshot_to_dict(snapshot), separators=(",", ":"))


def format_json_error(*, code: str, message: str, command: str, **details: Any) -> str:
    """One-line envelope printed in place of the next snapshot line when a session dies.

    ``{"ok": false, "command": ..., "error": {"code", "message", **details}, "timestamp"}``.
    *details* carries what the exception knows (``host``/``port`` for
    transport failures, ``pending_bytes`` for a truncated stream).
    """
    return json.dumps(
        {
            "ok": False,
            "command": command,
            "error": {"code": code, "message": message, **details},
            "timestamp": datetime.now(UTC).isoformat(),
        },
        separators=(",", ":"),
        default=str,
    )
