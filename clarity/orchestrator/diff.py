"""Word-level change description between an original and a revised text.

The diff is deliberately coarse: any change yields the whole original as a
single deletion followed by the whole revision as a single insertion. No
token alignment is attempted; renderers strike through the first span and
highlight the second.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SpanOp(Enum):
    DELETE = "delete"
    INSERT = "insert"


@dataclass(frozen=True)
class DiffSpan:
    op: SpanOp
    text: str
    words: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DiffResult:
    spans: tuple[DiffSpan, ...] = field(default_factory=tuple)

    @property
    def changed(self) -> bool:
        return bool(self.spans)

    @property
    def deleted(self) -> DiffSpan | None:
        return next((s for s in self.spans if s.op is SpanOp.DELETE), None)

    @property
    def inserted(self) -> DiffSpan | None:
        return next((s for s in self.spans if s.op is SpanOp.INSERT), None)


NO_CHANGE = DiffResult()


def diff(original: str, revised: str) -> DiffResult:
    if original == revised:
        return NO_CHANGE
    return DiffResult(
        spans=(
            DiffSpan(SpanOp.DELETE, original, tuple(original.split())),
            DiffSpan(SpanOp.INSERT, revised, tuple(revised.split())),
        )
    )
