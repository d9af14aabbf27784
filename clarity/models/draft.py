"""Resolution draft data models.

A draft is the reviewer's unsaved decision for one conflict. Each conflict
flow has its own variant carrying only the fields that flow uses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

MAX_EDIT_LENGTH = 1000
MIN_REASONING_LENGTH = 20

# Sentinel for a contradiction where no statement is correct
NEITHER = "NEITHER"


class ManualAction(Enum):
    UPDATE = "UPDATE"
    CLARIFY = "CLARIFY"
    ERROR = "ERROR"
    KEEP = "KEEP"


@dataclass(frozen=True)
class ManualEdit:
    """A per-mention text override."""

    text: str
    action: ManualAction = ManualAction.UPDATE
    is_dirty: bool = False

    @classmethod
    def revise(
        cls, original: str | None, text: str, action: ManualAction
    ) -> ManualEdit:
        """Build an edit, deriving ``is_dirty`` against the original text.

        ``original`` is None when the mention is unknown; the text is then
        treated as unchanged.
        """
        text = text[:MAX_EDIT_LENGTH]
        is_dirty = original is not None and text != original
        return cls(text=text, action=action, is_dirty=is_dirty)


@dataclass(frozen=True)
class TemporalDraft:
    conflict_id: str
    selected_temporal_id: str | None = None
    keep_history: bool = False
    kind: str = field(default="temporal", init=False)

    def is_complete(self) -> bool:
        return bool(self.selected_temporal_id)


@dataclass(frozen=True)
class ContradictionDraft:
    conflict_id: str
    selected_correct_id: str | None = None
    reasoning: str = ""
    kind: str = field(default="contradiction", init=False)

    @property
    def neither(self) -> bool:
        return self.selected_correct_id == NEITHER

    def is_complete(self) -> bool:
        return (
            bool(self.selected_correct_id)
            and len(self.reasoning) >= MIN_REASONING_LENGTH
        )


@dataclass(frozen=True)
class ManualDraft:
    conflict_id: str
    edits: dict[str, ManualEdit] = field(default_factory=dict)
    kind: str = field(default="manual", init=False)

    def dirty_edits(self) -> dict[str, ManualEdit]:
        return {mid: e for mid, e in self.edits.items() if e.is_dirty}

    def is_complete(self) -> bool:
        return any(e.is_dirty for e in self.edits.values())


ResolutionDraft = TemporalDraft | ContradictionDraft | ManualDraft
