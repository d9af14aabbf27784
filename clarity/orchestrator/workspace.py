"""Resolution workspace — the state machine driving one reviewer session.

Modes progress view -> resolve -> preview -> verifying -> resolved for the
selected conflict, and end in all_cleared once no OPEN conflict remains.
Every action returns True when applied and False when refused; refusals
are logged and never raised, and leave the registry untouched.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import fields, replace
from datetime import datetime, timezone
from enum import Enum

from clarity.models.conflict import Conflict, ConflictType
from clarity.models.draft import (
    ContradictionDraft,
    ManualAction,
    ManualDraft,
    ManualEdit,
    ResolutionDraft,
    TemporalDraft,
)
from clarity.orchestrator.previewer import Preview, build_preview
from clarity.orchestrator.verifier import Verification
from clarity.registry.registry import ConflictRegistry

logger = logging.getLogger(__name__)


class WorkspaceMode(Enum):
    VIEW = "view"
    RESOLVE = "resolve"
    PREVIEW = "preview"
    VERIFYING = "verifying"
    RESOLVED = "resolved"
    ALL_CLEARED = "all_cleared"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Workspace:
    """Application state for a single review session."""

    def __init__(
        self,
        registry: ConflictRegistry,
        clock: Callable[[], datetime] = utcnow,
        verification_factory: Callable[[], Verification] = Verification,
    ) -> None:
        self.registry = registry
        self._clock = clock
        self._verification_factory = verification_factory
        self._mode = WorkspaceMode.VIEW
        self._selected_id: str | None = None
        self._draft: ResolutionDraft | None = None
        self._verification: Verification | None = None

    # -- Read accessors --

    @property
    def mode(self) -> WorkspaceMode:
        return self._mode

    @property
    def draft(self) -> ResolutionDraft | None:
        return self._draft

    @property
    def selected_conflict_id(self) -> str | None:
        return self._selected_id

    @property
    def conflict(self) -> Conflict | None:
        if self._selected_id is None:
            return None
        return self.registry.get(self._selected_id)

    @property
    def conflicts(self) -> list[Conflict]:
        return self.registry.list()

    @property
    def verification(self) -> Verification | None:
        return self._verification

    @property
    def all_resolved(self) -> bool:
        return len(self.registry) > 0 and self.registry.open_count() == 0

    # -- Session --

    def load(self, conflicts: Iterable[Conflict]) -> bool:
        """Replace the registry with a fresh snapshot and select its first conflict."""
        if self._refuse_while_verifying("load"):
            return False
        self.registry = ConflictRegistry(conflicts)
        self._clear()
        first = next(iter(self.registry.list()), None)
        if first is not None:
            self._selected_id = first.id
        return True

    def reset(self) -> bool:
        if self._refuse_while_verifying("reset"):
            return False
        self._clear()
        self._selected_id = None
        return True

    def select(self, conflict_id: str) -> bool:
        """Select a conflict, discarding any draft in progress."""
        if self._refuse_while_verifying("select"):
            return False
        if conflict_id not in self.registry:
            logger.warning("Cannot select unknown conflict %s", conflict_id)
            return False
        if self._draft is not None:
            logger.info("Discarding draft for %s", self._draft.conflict_id)
        self._clear()
        self._selected_id = conflict_id
        return True

    # -- Draft lifecycle --

    def start_resolution(self) -> bool:
        """Open an empty draft for the selected conflict's quick-resolve flow.

        INTRA_DOC conflicts only have the manual flow, so they get a
        pre-populated manual draft instead.
        """
        conflict = self._resolvable_conflict("start_resolution")
        if conflict is None:
            return False
        if conflict.type is ConflictType.TEMPORAL:
            self._draft = TemporalDraft(conflict_id=conflict.id)
        elif conflict.type is ConflictType.CONTRADICTION:
            self._draft = ContradictionDraft(conflict_id=conflict.id)
        else:
            self._draft = self._manual_draft(conflict)
        self._mode = WorkspaceMode.RESOLVE
        return True

    def init_manual_draft(self) -> bool:
        """Open a manual-override draft seeded with every mention's text."""
        conflict = self._resolvable_conflict("init_manual_draft")
        if conflict is None:
            return False
        self._draft = self._manual_draft(conflict)
        self._mode = WorkspaceMode.RESOLVE
        return True

    def update_draft(self, **updates) -> bool:
        """Shallow-merge fields into the active draft.

        Fields the active draft variant does not carry are ignored.
        """
        if not self._expect(WorkspaceMode.RESOLVE, "update_draft") or self._draft is None:
            return False
        allowed = {f.name for f in fields(self._draft) if f.init} - {"conflict_id"}
        ignored = set(updates) - allowed
        if ignored:
            logger.debug(
                "Ignoring fields %s for %s draft", sorted(ignored), self._draft.kind
            )
        applicable = {k: v for k, v in updates.items() if k in allowed}
        if not applicable:
            return False
        # Only fields that default to None may be cleared
        nullable = {f.name for f in fields(self._draft) if f.default is None}
        cleared = sorted(k for k, v in applicable.items() if v is None and k not in nullable)
        if cleared:
            logger.warning("Refusing to clear %s on %s draft", cleared, self._draft.kind)
            return False
        self._draft = replace(self._draft, **applicable)
        return True

    def update_manual_edit(
        self, mention_id: str, text: str, action: ManualAction = ManualAction.UPDATE
    ) -> bool:
        """Replace the edit for one mention, re-deriving its dirty flag.

        The original text comes from the registry, never from the draft.
        """
        if not self._expect(WorkspaceMode.RESOLVE, "update_manual_edit"):
            return False
        if not isinstance(self._draft, ManualDraft):
            logger.warning("update_manual_edit needs a manual draft")
            return False
        mention = self.registry.get_mention(self._draft.conflict_id, mention_id)
        original = mention.text if mention is not None else None
        edits = dict(self._draft.edits)
        edits[mention_id] = ManualEdit.revise(original, text, action)
        self._draft = replace(self._draft, edits=edits)
        return True

    def can_preview(self) -> bool:
        return self._draft is not None and self._draft.is_complete()

    def cancel(self) -> bool:
        if not self._expect(WorkspaceMode.RESOLVE, "cancel"):
            return False
        self._draft = None
        self._mode = WorkspaceMode.VIEW
        return True

    def go_to_preview(self) -> bool:
        if not self._expect(WorkspaceMode.RESOLVE, "go_to_preview"):
            return False
        if not self.can_preview():
            logger.warning(
                "Draft for %s is incomplete, staying in resolve", self._selected_id
            )
            return False
        self._mode = WorkspaceMode.PREVIEW
        return True

    def return_to_edit(self) -> bool:
        if not self._expect(WorkspaceMode.PREVIEW, "return_to_edit"):
            return False
        self._mode = WorkspaceMode.RESOLVE
        return True

    def preview(self) -> Preview | None:
        conflict = self.conflict
        if self._draft is None or conflict is None:
            return None
        return build_preview(conflict, self._draft)

    # -- Verification and finalize --

    def submit(self) -> Verification | None:
        """Enter verifying and prepare the run; ``verify()`` drives it."""
        if not self._expect(WorkspaceMode.PREVIEW, "submit"):
            return None
        self._verification = self._verification_factory()
        self._mode = WorkspaceMode.VERIFYING
        logger.info("Verification started for %s", self._selected_id)
        return self._verification

    async def verify(self) -> bool:
        """Run the pending verification to completion, then finalize.

        There is no way to abort from here; if the surrounding task is
        cancelled the conflict stays OPEN.
        """
        verification = self._verification
        if self._mode is not WorkspaceMode.VERIFYING or verification is None:
            logger.warning("verify called in mode %s", self._mode.value)
            return False
        if verification.started:
            logger.warning("Verification for %s is already running", self._selected_id)
            return False
        try:
            await verification.run(self._finalize)
        except asyncio.CancelledError:
            logger.warning(
                "Verification for %s interrupted, conflict left open", self._selected_id
            )
            raise
        return self._mode is WorkspaceMode.RESOLVED

    def _finalize(self) -> None:
        if self._mode is not WorkspaceMode.VERIFYING or self._draft is None:
            logger.warning("finalize called in mode %s", self._mode.value)
            return
        conflict_id = self._draft.conflict_id
        if self.registry.mark_resolved(conflict_id, self._clock()):
            logger.info("Conflict %s resolved via %s draft", conflict_id, self._draft.kind)
            self._mode = WorkspaceMode.RESOLVED
        else:
            self._mode = WorkspaceMode.VIEW
        self._draft = None

    def advance(self) -> bool:
        """Move on from a resolved conflict to the next OPEN one, or all_cleared."""
        if not self._expect(WorkspaceMode.RESOLVED, "advance"):
            return False
        nxt = self.registry.next_open(exclude_id=self._selected_id)
        if nxt is not None:
            return self.select(nxt.id)
        self._clear()
        self._selected_id = None
        self._mode = WorkspaceMode.ALL_CLEARED
        logger.info("All conflicts cleared")
        return True

    # -- Helpers --

    def _clear(self) -> None:
        self._mode = WorkspaceMode.VIEW
        self._draft = None
        self._verification = None

    def _expect(self, mode: WorkspaceMode, action: str) -> bool:
        if self._mode is not mode:
            logger.warning("Ignoring %s in mode %s", action, self._mode.value)
            return False
        return True

    def _refuse_while_verifying(self, action: str) -> bool:
        if self._mode is WorkspaceMode.VERIFYING:
            logger.warning("Ignoring %s while verification is running", action)
            return True
        return False

    def _resolvable_conflict(self, action: str) -> Conflict | None:
        if not self._expect(WorkspaceMode.VIEW, action):
            return None
        conflict = self.conflict
        if conflict is None:
            logger.warning("Ignoring %s with no conflict selected", action)
            return None
        if not conflict.is_open:
            logger.warning("Ignoring %s for resolved conflict %s", action, conflict.id)
            return None
        return conflict

    @staticmethod
    def _manual_draft(conflict: Conflict) -> ManualDraft:
        edits = {m.id: ManualEdit(text=m.text) for m in conflict.mentions}
        return ManualDraft(conflict_id=conflict.id, edits=edits)
