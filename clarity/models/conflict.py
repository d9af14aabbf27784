"""Conflict and mention data models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class ConflictType(Enum):
    TEMPORAL = "TEMPORAL"
    CONTRADICTION = "CONTRADICTION"
    INTRA_DOC = "INTRA_DOC"


class ResolutionStatus(Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class SourceType(Enum):
    MAIN = "Main"
    APPENDIX = "Appendix"
    POLICY = "Policy"
    RFP = "RFP"


@dataclass(frozen=True)
class Mention:
    """One occurrence of a statement in a source document."""

    id: str
    doc_id: str
    doc_name: str
    page: int
    section: str
    text: str
    date: str | None = None
    source_type: SourceType | None = None

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"Mention {self.id}: page must be positive, got {self.page}")


@dataclass(frozen=True)
class Conflict:
    """A detected disagreement between mentions.

    Instances are never mutated in place: the registry swaps in a resolved
    copy, so a reader holding the old object still sees a consistent record.
    """

    id: str
    type: ConflictType
    title: str
    description: str
    mentions: tuple[Mention, ...] = field(default_factory=tuple)
    status: ResolutionStatus = ResolutionStatus.OPEN
    ai_recommendation: str | None = None
    resolved_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.mentions:
            raise ValueError(f"Conflict {self.id} has no mentions")
        if (self.status is ResolutionStatus.RESOLVED) != (self.resolved_at is not None):
            raise ValueError(f"Conflict {self.id}: resolved_at must be set iff status is RESOLVED")

    @property
    def is_open(self) -> bool:
        return self.status is ResolutionStatus.OPEN

    def mention(self, mention_id: str) -> Mention | None:
        for m in self.mentions:
            if m.id == mention_id:
                return m
        return None

    def resolved(self, timestamp: datetime) -> Conflict:
        return replace(self, status=ResolutionStatus.RESOLVED, resolved_at=timestamp)
