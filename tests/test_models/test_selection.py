from __future__ import annotations

import pytest

from cygpkg.exceptions import SelectionError
from cygpkg.models import ManifestOptions, SelectionCriteria


@pytest.mark.unit
class TestSelectionCriteriaBuild:
    """Tests for SelectionCriteria.build."""

    def test_normalization(self) -> None:
        criteria = SelectionCriteria.build(
            names=[" bash ", "", "Bash"],
            categories=["Base", " DEVEL "],
            package_sets=["GCC"],
        )

        assert criteria.names == frozenset({"bash", "Bash"})
        assert criteria.categories == frozenset({"base", "devel"})
        assert criteria.package_sets == frozenset({"gcc"})
        assert criteria.include_runtime_deps is True
        assert criteria.include_build_deps is False

    def test_invalid_regex(self) -> None:
        with pytest.raises(SelectionError) as exc_info:
            SelectionCriteria.build(regexes=["ok", "[unclosed"])

        assert exc_info.value.pattern == "[unclosed"

    def test_is_empty(self) -> None:
        assert SelectionCriteria.build().is_empty
        assert SelectionCriteria.build(include_build_deps=True).is_empty
        assert not SelectionCriteria.build(regexes=["^x"]).is_empty
        assert not SelectionCriteria.build(package_sets=["x"]).is_empty


@pytest.mark.unit
class TestSelectionCriteriaMatching:
    """Tests for the match helpers used during parsing."""

    def test_matches_name(self) -> None:
        criteria = SelectionCriteria.build(names=["bash"], regexes=["^perl-"])

        assert criteria.matches_name("bash")
        assert criteria.matches_name("perl-Text-CSV")
        assert not criteria.matches_name("BASH")
        assert not criteria.matches_name("libperl5")

    def test_regex_is_searched_not_anchored(self) -> None:
        assert SelectionCriteria.build(regexes=["ssl"]).matches_name("libssl3")

    def test_matches_category(self) -> None:
        criteria = SelectionCriteria.build(categories=["base"])

        assert criteria.matches_category("Shells Base")
        assert not criteria.matches_category("Shells")
        assert not SelectionCriteria.build().matches_category("Base")

    def test_matches_package_set(self) -> None:
        criteria = SelectionCriteria.build(package_sets=["gcc"])

        assert criteria.matches_package_set("GCC")
        assert not criteria.matches_package_set("binutils")
        assert not criteria.matches_package_set(None)
        assert not criteria.matches_package_set("")


@pytest.mark.unit
class TestManifestOptions:
    """Tests for ManifestOptions defaults."""

    def test_defaults_keep_only_the_essentials(self) -> None:
        options = ManifestOptions()

        assert not options.keep_long_description
        assert not options.keep_message
        assert not options.keep_hash
        assert not options.keep_obsoletes
        assert not options.keep_conflicts
        assert not options.keep_replace_versions
        assert options.track_provides
