"""Loads a detection-engine snapshot into Conflict records."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from clarity.models.conflict import (
    Conflict,
    ConflictType,
    Mention,
    ResolutionStatus,
    SourceType,
)

logger = logging.getLogger(__name__)


def load_conflicts(path: Path) -> list[Conflict]:
    """Read a JSON snapshot file and parse it."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    conflicts = parse_conflicts(raw)
    logger.info("Loaded %d conflicts from %s", len(conflicts), path)
    return conflicts


def parse_conflicts(raw: list[dict]) -> list[Conflict]:
    """Parse a list of camelCase conflict records.

    Raises ValueError naming the offending record on malformed input.
    """
    conflicts: list[Conflict] = []
    for i, record in enumerate(raw):
        try:
            conflicts.append(_parse_conflict(record))
        except (KeyError, TypeError, ValueError) as exc:
            ident = record.get("id", f"#{i}") if isinstance(record, dict) else f"#{i}"
            raise ValueError(f"Malformed conflict record {ident}: {exc}") from exc
    return conflicts


def _parse_conflict(record: dict) -> Conflict:
    resolved_at = record.get("resolvedAt")
    return Conflict(
        id=record["id"],
        type=ConflictType(record["type"]),
        title=record["title"],
        description=record.get("description", ""),
        mentions=tuple(_parse_mention(m) for m in record["mentions"]),
        status=ResolutionStatus(record.get("status", "OPEN")),
        ai_recommendation=record.get("aiRecommendation"),
        resolved_at=datetime.fromisoformat(resolved_at) if resolved_at else None,
    )


def _parse_mention(record: dict) -> Mention:
    source_type = record.get("sourceType")
    return Mention(
        id=record["id"],
        doc_id=record["docId"],
        doc_name=record["docName"],
        page=int(record["page"]),
        section=record["section"],
        text=record["text"],
        date=record.get("date"),
        source_type=SourceType(source_type) if source_type else None,
    )
