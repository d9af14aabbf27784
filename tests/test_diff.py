"""Tests for the coarse word-level diff."""

from __future__ import annotations

import pytest

from clarity.orchestrator.diff import NO_CHANGE, SpanOp, diff


class TestNoChange:
    """Identical inputs produce the neutral result."""

    @pytest.mark.parametrize("text", ["", "We are HITRUST certified", "  spaced   out  "])
    def test_identical_strings(self, text: str) -> None:
        result = diff(text, text)
        assert result == NO_CHANGE
        assert not result.changed
        assert result.deleted is None
        assert result.inserted is None


class TestCoarseDiff:
    """Any change is one full deletion followed by one full insertion."""

    def test_single_word_change_keeps_whole_texts(self) -> None:
        result = diff("Monthly fee: $50,000 per month", "Monthly fee: $52,000 per month")
        assert result.changed
        assert [s.op for s in result.spans] == [SpanOp.DELETE, SpanOp.INSERT]
        assert result.deleted.text == "Monthly fee: $50,000 per month"
        assert result.inserted.text == "Monthly fee: $52,000 per month"

    def test_words_split_on_whitespace_runs(self) -> None:
        result = diff("a  b\tc", "a b")
        assert result.deleted.words == ("a", "b", "c")
        assert result.inserted.words == ("a", "b")

    def test_whitespace_only_difference_is_a_change(self) -> None:
        result = diff("a b", "a  b")
        assert result.changed
        assert len(result.spans) == 2

    def test_empty_revision(self) -> None:
        result = diff("Customer will pay $45,000 monthly", "")
        assert result.deleted.text == "Customer will pay $45,000 monthly"
        assert result.inserted.text == ""
        assert result.inserted.words == ()
