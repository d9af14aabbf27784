"""Audit export — serializes the session's conflicts for download."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date, datetime

from clarity.models.conflict import Conflict, ResolutionStatus

EXPORT_FILENAME_PREFIX = "Clarity_Resolution_Log"


def build_export(
    conflicts: Sequence[Conflict],
    operator: str | None,
    generated_at: datetime,
) -> dict:
    """Build the export document: summary counts plus one audit entry per conflict."""
    return {
        "generatedAt": generated_at.isoformat(),
        "user": operator,
        "summary": {
            "totalConflicts": len(conflicts),
            "resolved": sum(1 for c in conflicts if c.status is ResolutionStatus.RESOLVED),
        },
        "auditLog": [
            {
                "id": c.id,
                "title": c.title,
                "status": c.status.value,
                "resolvedAt": c.resolved_at.isoformat() if c.resolved_at else None,
                "type": c.type.value,
            }
            for c in conflicts
        ],
    }


def export_json(
    conflicts: Sequence[Conflict],
    operator: str | None,
    generated_at: datetime,
) -> bytes:
    document = build_export(conflicts, operator, generated_at)
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


def export_filename(day: date) -> str:
    return f"{EXPORT_FILENAME_PREFIX}_{day.isoformat()}.json"
