"""Preview builder — describes the effect of a draft before it is submitted."""

from __future__ import annotations

from dataclasses import dataclass, field

from clarity.models.conflict import Conflict, Mention
from clarity.models.draft import (
    ContradictionDraft,
    ManualAction,
    ManualDraft,
    ResolutionDraft,
    TemporalDraft,
)
from clarity.orchestrator.diff import DiffResult, diff


@dataclass(frozen=True)
class EditPreview:
    """A dirty manual edit rendered against its original mention."""

    mention_id: str
    action: ManualAction
    diff: DiffResult
    mention: Mention | None = None


@dataclass(frozen=True)
class Preview:
    conflict_id: str
    kind: str
    # Temporal
    current: Mention | None = None
    superseded: tuple[Mention, ...] = field(default_factory=tuple)
    keep_history: bool = False
    # Contradiction
    verified: Mention | None = None
    neither: bool = False
    reasoning: str = ""
    # Manual
    edits: tuple[EditPreview, ...] = field(default_factory=tuple)


def build_preview(conflict: Conflict, draft: ResolutionDraft) -> Preview:
    """Produce the preview for ``draft`` against the registry's ``conflict``."""
    if isinstance(draft, TemporalDraft):
        current = conflict.mention(draft.selected_temporal_id or "")
        superseded = tuple(
            m for m in conflict.mentions if current is None or m.id != current.id
        )
        return Preview(
            conflict_id=conflict.id,
            kind=draft.kind,
            current=current,
            superseded=superseded,
            keep_history=draft.keep_history,
        )

    if isinstance(draft, ContradictionDraft):
        return Preview(
            conflict_id=conflict.id,
            kind=draft.kind,
            verified=None if draft.neither else conflict.mention(draft.selected_correct_id or ""),
            neither=draft.neither,
            reasoning=draft.reasoning,
        )

    if isinstance(draft, ManualDraft):
        return Preview(
            conflict_id=conflict.id,
            kind=draft.kind,
            edits=tuple(_edit_previews(conflict, draft)),
        )

    raise TypeError(f"Unsupported draft type: {type(draft).__name__}")


def _edit_previews(conflict: Conflict, draft: ManualDraft) -> list[EditPreview]:
    previews: list[EditPreview] = []
    for mention_id, edit in draft.dirty_edits().items():
        mention = conflict.mention(mention_id)
        original = mention.text if mention is not None else edit.text
        previews.append(
            EditPreview(
                mention_id=mention_id,
                action=edit.action,
                diff=diff(original, edit.text),
                mention=mention,
            )
        )
    return previews
