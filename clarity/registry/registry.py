"""In-memory conflict registry."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from clarity.models.conflict import Conflict, Mention

logger = logging.getLogger(__name__)


class ConflictRegistry:
    """Owns the conflicts of one review session.

    Iteration order is insertion order and is part of the contract:
    ``next_open`` relies on it to pick the next conflict to review.
    """

    def __init__(self, conflicts: Iterable[Conflict] = ()) -> None:
        self._conflicts: dict[str, Conflict] = {}
        for conflict in conflicts:
            if conflict.id in self._conflicts:
                raise ValueError(f"Duplicate conflict id: {conflict.id}")
            self._conflicts[conflict.id] = conflict

    def __len__(self) -> int:
        return len(self._conflicts)

    def __contains__(self, conflict_id: object) -> bool:
        return conflict_id in self._conflicts

    def list(self) -> list[Conflict]:
        return list(self._conflicts.values())

    def get(self, conflict_id: str) -> Conflict | None:
        return self._conflicts.get(conflict_id)

    def get_mention(self, conflict_id: str, mention_id: str) -> Mention | None:
        conflict = self.get(conflict_id)
        if conflict is None:
            return None
        return conflict.mention(mention_id)

    def mark_resolved(self, conflict_id: str, timestamp: datetime) -> bool:
        """Transition a conflict OPEN -> RESOLVED.

        Returns False without touching anything if the id is unknown or the
        conflict is already resolved.
        """
        conflict = self._conflicts.get(conflict_id)
        if conflict is None:
            logger.warning("Cannot resolve unknown conflict %s", conflict_id)
            return False
        if not conflict.is_open:
            logger.warning("Conflict %s is already resolved", conflict_id)
            return False
        self._conflicts[conflict_id] = conflict.resolved(timestamp)
        return True

    def next_open(self, exclude_id: str | None = None) -> Conflict | None:
        """First OPEN conflict in registry order whose id is not ``exclude_id``."""
        for conflict in self._conflicts.values():
            if conflict.is_open and conflict.id != exclude_id:
                return conflict
        return None

    def open_count(self) -> int:
        return sum(1 for c in self._conflicts.values() if c.is_open)

    def resolved_count(self) -> int:
        return len(self._conflicts) - self.open_count()
