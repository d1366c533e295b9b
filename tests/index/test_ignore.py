"""Tests for .gitignore resolution and deny-lists."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest

from codesearch.config.models import IndexingConfig
from codesearch.core.errors import ErrorCode, IndexingError
from codesearch.index.ignore import DenyList, IgnoreRuleSet, PathFilter


def _touch(root: Path, rel: str, content: str = "x\n") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def nested_repo(tmp_path: Path) -> Path:
    """Root ignores target/ and *.log; src/ ignores generated/ and re-includes keep.log."""
    root = tmp_path / "r"
    root.mkdir()
    (root / ".gitignore").write_text("target/\n*.log\n")
    _touch(root, "src/.gitignore", "# nested rules\ngenerated/\n!keep.log\n/only_here.txt\n")
    _touch(root, "target/app.rs")
    _touch(root, "src/main.rs")
    _touch(root, "src/main.py")
    _touch(root, "src/generated/out.rs")
    _touch(root, "src/generated/deep/more.rs")
    _touch(root, "src/keep.log")
    _touch(root, "src/other.log")
    _touch(root, "app.log")
    _touch(root, "src/only_here.txt")
    _touch(root, "src/sub/only_here.txt")
    return root


class TestNestedGitignore:
    """Nearest-ancestor resolution across root and nested .gitignore files."""

    def test_root_directory_rule_ignores_target(self, nested_repo: Path) -> None:
        path_filter = PathFilter(nested_repo)

        assert path_filter.is_ignored(nested_repo / "target") is True
        assert path_filter.is_ignored(nested_repo / "target" / "app.rs") is True

    def test_plain_sources_are_not_ignored(self, nested_repo: Path) -> None:
        path_filter = PathFilter(nested_repo)

        assert path_filter.is_ignored(nested_repo / "src" / "main.rs") is False
        assert path_filter.is_ignored(nested_repo / "src" / "main.py") is False

    def test_nested_directory_rule_ignores_everything_beneath(self, nested_repo: Path) -> None:
        path_filter = PathFilter(nested_repo)

        assert path_filter.is_ignored(nested_repo / "src" / "generated") is True
        assert path_filter.is_ignored(nested_repo / "src" / "generated" / "out.rs") is True
        assert path_filter.is_ignored(nested_repo / "src" / "generated" / "deep" / "more.rs") is True

    def test_root_pattern_applies_anywhere_unless_nested_allow_list(self, nested_repo: Path) -> None:
        # Given a root *.log rule and a nested !keep.log rule
        path_filter = PathFilter(nested_repo)

        # Then the nearest rule set decides
        assert path_filter.is_ignored(nested_repo / "app.log") is True
        assert path_filter.is_ignored(nested_repo / "src" / "other.log") is True
        assert path_filter.is_ignored(nested_repo / "src" / "keep.log") is False

    def test_anchored_nested_pattern_only_matches_its_directory(self, nested_repo: Path) -> None:
        path_filter = PathFilter(nested_repo)

        assert path_filter.is_ignored(nested_repo / "src" / "only_here.txt") is True
        assert path_filter.is_ignored(nested_repo / "src" / "sub" / "only_here.txt") is False

    def test_relative_paths_are_resolved_against_root(self, nested_repo: Path) -> None:
        path_filter = PathFilter(nested_repo)

        assert path_filter.is_ignored("src/generated/out.rs") is True
        assert path_filter.is_ignored("src/main.rs") is False

    def test_paths_outside_root_are_never_ignored(self, nested_repo: Path, tmp_path: Path) -> None:
        outside = _touch(tmp_path, "elsewhere/app.log")
        path_filter = PathFilter(nested_repo)

        assert path_filter.is_ignored(outside) is False
        assert path_filter.is_ignored(nested_repo) is False


class TestRuleOrdering:
    """Last matching rule wins within one rule set."""

    def test_later_negation_reincludes(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("*.rs\n!keep.rs\n")
        _touch(tmp_path, "keep.rs")
        _touch(tmp_path, "drop.rs")
        path_filter = PathFilter(tmp_path)

        assert path_filter.is_ignored(tmp_path / "keep.rs") is False
        assert path_filter.is_ignored(tmp_path / "drop.rs") is True

    def test_later_ignore_overrides_earlier_negation(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("!keep.rs\n*.rs\n")
        _touch(tmp_path, "keep.rs")
        path_filter = PathFilter(tmp_path)

        assert path_filter.is_ignored(tmp_path / "keep.rs") is True

    def test_rule_set_match_reports_no_match_as_none(self, tmp_path: Path) -> None:
        rule_set = IgnoreRuleSet(tmp_path, ["*.log", "", "# comment"])

        assert len(rule_set) == 1
        assert rule_set.match("a.log") is True
        assert rule_set.match("a.rs") is None

    def test_building_rules_emits_no_warnings(self, tmp_path: Path) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            rule_set = IgnoreRuleSet(tmp_path, ["build/", "!keep.log", "*.log"], rel_dir="src")

        assert rule_set.match("src/app/debug.log") is True


class TestDiscovery:
    """Rule-set discovery while building the filter."""

    def test_rule_sets_keyed_by_directory(self, nested_repo: Path) -> None:
        path_filter = PathFilter(nested_repo)

        assert set(path_filter.rule_sets) == {path_filter.root, path_filter.root / "src"}

    def test_rule_set_table_is_read_only(self, nested_repo: Path) -> None:
        path_filter = PathFilter(nested_repo)

        with pytest.raises(TypeError):
            path_filter.rule_sets[nested_repo] = IgnoreRuleSet(nested_repo, [])  # type: ignore[index]

    def test_depth_bound_limits_discovery(self, tmp_path: Path) -> None:
        _touch(tmp_path, "a/.gitignore", "*.tmp\n")
        _touch(tmp_path, "a/b/.gitignore", "*.rs\n")
        path_filter = PathFilter(tmp_path, max_depth=2)

        assert path_filter.root / "a" in path_filter.rule_sets
        assert path_filter.root / "a" / "b" not in path_filter.rule_sets

    def test_vcs_directories_are_not_searched(self, tmp_path: Path) -> None:
        _touch(tmp_path, ".git/.gitignore", "*\n")
        _touch(tmp_path, "main.py")
        path_filter = PathFilter(tmp_path)

        assert path_filter.is_ignored(tmp_path / "main.py") is False

    def test_gitignore_disabled(self, nested_repo: Path) -> None:
        path_filter = PathFilter(nested_repo, use_gitignore=False)

        assert len(path_filter.rule_sets) == 0
        assert path_filter.is_ignored(nested_repo / "target" / "app.rs") is False

    def test_unreadable_ignore_file_contributes_nothing(self, tmp_path: Path) -> None:
        assert IgnoreRuleSet.from_file(tmp_path / "missing" / ".gitignore", tmp_path) is None

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(IndexingError) as exc_info:
            PathFilter(tmp_path / "nope")

        assert exc_info.value.code == ErrorCode.INDEX_IO_ERROR


class TestFilterPaths:
    """Parallel filtering keeps every non-ignored path exactly once."""

    def test_filter_paths(self, nested_repo: Path) -> None:
        path_filter = PathFilter(nested_repo)
        candidates = [
            nested_repo / "src" / "main.rs",
            nested_repo / "src" / "generated" / "out.rs",
            nested_repo / "app.log",
            nested_repo / "src" / "keep.log",
        ]

        kept = path_filter.filter_paths(candidates, max_workers=4)

        assert sorted(kept) == sorted([nested_repo / "src" / "main.rs", nested_repo / "src" / "keep.log"])

    def test_filter_paths_empty(self, nested_repo: Path) -> None:
        assert PathFilter(nested_repo).filter_paths([]) == []


class TestDenyList:
    """Static skip-dir, skip-file and extension checks."""

    @pytest.fixture
    def deny_list(self) -> DenyList:
        return DenyList.from_config(IndexingConfig())

    @pytest.mark.parametrize(
        ("rel_path", "denied"),
        [
            ("src/main.py", False),
            ("src/Main.PY", False),
            ("node_modules/react/index.js", True),
            ("pkg/a/b.go", True),
            ("Cargo.lock", True),
            ("logs/server.log", True),
            ("assets/logo.png", True),
            ("Makefile", False),
            ("build", False),
            ("docs/guide.md", False),
        ],
    )
    def test_is_denied(self, deny_list: DenyList, rel_path: str, denied: bool) -> None:
        assert deny_list.is_denied(rel_path) is denied

    def test_path_filter_combines_both_layers(self, nested_repo: Path, deny_list: DenyList) -> None:
        _touch(nested_repo, "node_modules/lib.js")
        _touch(nested_repo, "image.png")
        path_filter = PathFilter(nested_repo, deny_list=deny_list)

        assert path_filter.is_excluded(nested_repo / "node_modules" / "lib.js") is True
        assert path_filter.is_excluded(nested_repo / "image.png") is True
        assert path_filter.is_excluded(nested_repo / "target" / "app.rs") is True
        assert path_filter.is_excluded(nested_repo / "src" / "main.rs") is False

    def test_no_deny_list_denies_nothing(self, nested_repo: Path) -> None:
        assert PathFilter(nested_repo).is_denied("node_modules/lib.js") is False
