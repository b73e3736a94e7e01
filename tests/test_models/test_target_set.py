from __future__ import annotations

import pytest

from cygpkg.models import TargetSet


@pytest.mark.unit
class TestTargetSet:
    """Tests for TargetSet ordering and deduplication."""

    def test_insertion_order_and_dedup(self) -> None:
        targets = TargetSet(["cygwin", "bash", "cygwin"])

        assert list(targets) == ["cygwin", "bash"]
        assert len(targets) == 2

    def test_add_reports_novelty(self) -> None:
        targets = TargetSet()

        assert targets.add("bash") is True
        assert targets.add("bash") is False

    def test_extend_counts_new_names(self) -> None:
        targets = TargetSet(["a"])

        assert targets.extend(["a", "b", "c", "b"]) == 2
        assert list(targets) == ["a", "b", "c"]

    def test_sorted_names(self) -> None:
        assert TargetSet(["zsh", "bash", "dash"]).sorted_names() == ["bash", "dash", "zsh"]

    def test_indexing_and_membership(self) -> None:
        targets = TargetSet(["a", "b"])

        assert targets[1] == "b"
        assert "a" in targets
        assert "c" not in targets
        with pytest.raises(IndexError):
            targets[2]

    def test_equality_is_order_sensitive(self) -> None:
        assert TargetSet(["a", "b"]) == TargetSet(["a", "b"])
        assert TargetSet(["a", "b"]) != TargetSet(["b", "a"])
        assert TargetSet(["a"]) != ["a"]

    def test_repr(self) -> None:
        assert repr(TargetSet(["a"])) == "TargetSet(['a'])"
