"""Hierarchical .gitignore resolution plus static deny-lists.

Two layers decide whether a path under a codebase root is skipped:

- IgnoreRuleSet / PathFilter.is_ignored: one rule set per directory that
  holds a .gitignore. Resolution walks from the target's directory up to the
  root; within a rule set the last matching rule wins, and the first rule set
  that matches at all decides. Files are additionally excluded when any
  ancestor directory is itself ignored.
- DenyList: configured skip_dirs (by path segment), skip_files (fnmatch on
  the file name) and the extension allow-list.

Patterns from nested .gitignore files are rewritten relative to the codebase
root when loaded, so every rule set is matched against root-relative paths.
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import TYPE_CHECKING

import pathspec
import structlog

from codesearch.core.errors import IndexingError
from codesearch.core.excludes import VCS_DIRS

if TYPE_CHECKING:
    from codesearch.config.models import IndexingConfig

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "GITIGNORE_NAME",
    "DenyList",
    "IgnoreRuleSet",
    "PathFilter",
]

log = structlog.get_logger()

GITIGNORE_NAME = ".gitignore"
DEFAULT_MAX_DEPTH = 10


def _rebase_pattern(line: str, rel_dir: str) -> str:
    """Rewrite a nested .gitignore line so it matches root-relative paths.

    Patterns with a slash before the last character are anchored to their
    directory; the rest match at any depth beneath it.
    """
    negated = line.startswith("!")
    body = line[1:] if negated else line
    if "/" in body.rstrip("/"):
        rebased = f"/{rel_dir}/{body.lstrip('/')}"
    else:
        rebased = f"/{rel_dir}/**/{body}"
    return f"!{rebased}" if negated else rebased


class IgnoreRuleSet:
    """Ordered ignore/allow rules from one directory's .gitignore.

    Immutable after construction.
    """

    def __init__(self, directory: Path, lines: Sequence[str], *, rel_dir: str = "") -> None:
        self.directory = directory
        rules: list[str] = []
        for raw in lines:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            rules.append(_rebase_pattern(line, rel_dir) if rel_dir else line)
        self._rules: tuple[str, ...] = tuple(rules)
        self._patterns = tuple(
            p for p in pathspec.PathSpec.from_lines("gitwildmatch", rules).patterns if p.include is not None
        )

    @classmethod
    def from_file(cls, path: Path, root: Path) -> IgnoreRuleSet | None:
        """Load the rule set for path.parent, or None if the file can't be read."""
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            log.warning("ignore.read_failed", path=str(path), error=str(e))
            return None
        rel = path.parent.relative_to(root)
        rel_dir = "" if rel == Path(".") else rel.as_posix()
        return cls(path.parent, content.splitlines(), rel_dir=rel_dir)

    @property
    def rules(self) -> tuple[str, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._patterns)

    def match(self, rel_path: str, *, is_dir: bool = False) -> bool | None:
        """Return True (ignore), False (allow-listed) or None (no rule matched).

        The last matching rule wins.
        """
        candidate = f"{rel_path}/" if is_dir else rel_path
        verdict: bool | None = None
        for pattern in self._patterns:
            if pattern.match_file(candidate) is not None:
                verdict = bool(pattern.include)
        return verdict


@dataclass(frozen=True, slots=True)
class DenyList:
    """Static skip lists applied after .gitignore resolution."""

    extensions: frozenset[str]
    skip_dirs: frozenset[str]
    skip_files: tuple[str, ...]

    @classmethod
    def from_config(cls, indexing: IndexingConfig) -> DenyList:
        return cls(
            extensions=frozenset(ext.lower() for ext in indexing.extensions),
            skip_dirs=frozenset(indexing.skip_dirs),
            skip_files=tuple(indexing.skip_files),
        )

    def skips_dir(self, name: str) -> bool:
        return name in self.skip_dirs

    def is_denied(self, rel_path: str) -> bool:
        """Check a root-relative POSIX path against all three lists."""
        parts = PurePosixPath(rel_path).parts
        if not parts:
            return False

        if any(part in self.skip_dirs for part in parts[:-1]):
            return True

        name = parts[-1]
        if any(fnmatch.fnmatchcase(name, pattern) for pattern in self.skip_files):
            return True

        # Extension-less files (Makefile, Dockerfile) are not subject to the allow-list
        suffix = PurePosixPath(name).suffix
        return bool(suffix) and suffix.lower() not in self.extensions


class PathFilter:
    """Decides whether paths under a codebase root are excluded.

    Construction discovers every .gitignore up to ``max_depth`` levels below
    the root and builds a read-only directory -> IgnoreRuleSet table. An
    unreadable .gitignore contributes no rules; failing to enumerate the tree
    raises IndexingError.
    """

    def __init__(
        self,
        root: Path,
        *,
        deny_list: DenyList | None = None,
        use_gitignore: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        try:
            self._root = root.resolve(strict=True)
        except OSError as e:
            raise IndexingError.io_error(str(root), str(e)) from e
        if not self._root.is_dir():
            raise IndexingError.io_error(str(root), "not a directory")

        self._deny_list = deny_list
        rule_sets = self._discover(max_depth) if use_gitignore else {}
        self._rule_sets: Mapping[Path, IgnoreRuleSet] = MappingProxyType(rule_sets)
        log.debug("ignore.rule_sets_loaded", root=str(self._root), count=len(rule_sets))

    @property
    def root(self) -> Path:
        return self._root

    @property
    def rule_sets(self) -> Mapping[Path, IgnoreRuleSet]:
        return self._rule_sets

    def _discover(self, max_depth: int) -> dict[Path, IgnoreRuleSet]:
        rule_sets: dict[Path, IgnoreRuleSet] = {}

        def _on_error(error: OSError) -> None:
            raise IndexingError.io_error(str(error.filename or self._root), str(error)) from error

        for dirpath, dirnames, filenames in self._root.walk(on_error=_on_error):
            depth = len(dirpath.relative_to(self._root).parts)
            if depth + 1 >= max_depth:
                dirnames.clear()
            else:
                dirnames[:] = [d for d in dirnames if d not in VCS_DIRS]

            if GITIGNORE_NAME in filenames:
                rule_set = IgnoreRuleSet.from_file(dirpath / GITIGNORE_NAME, self._root)
                if rule_set is not None:
                    rule_sets[dirpath] = rule_set

        return rule_sets

    def _to_absolute(self, path: Path | str) -> Path:
        target = Path(path)
        if not target.is_absolute():
            target = self._root / target
        target = Path(os.path.normpath(target))
        if not target.is_relative_to(self._root):
            # Callers may hold an unresolved spelling of the root (symlinked tmp dirs)
            resolved = target.resolve()
            if resolved.is_relative_to(self._root):
                return resolved
        return target

    def _resolve(self, start: Path, rel_path: str, *, is_dir: bool) -> bool | None:
        current = start
        while True:
            rule_set = self._rule_sets.get(current)
            if rule_set is not None:
                verdict = rule_set.match(rel_path, is_dir=is_dir)
                if verdict is not None:
                    return verdict
            if current == self._root:
                return None
            parent = current.parent
            if parent == current or not parent.is_relative_to(self._root):
                return None
            current = parent

    def is_ignored(self, path: Path | str) -> bool:
        """Check a path (absolute, or relative to the root) against .gitignore rules.

        Paths outside the root are never ignored.
        """
        target = self._to_absolute(path)
        try:
            rel = target.relative_to(self._root)
        except ValueError:
            return False
        if not rel.parts:
            return False

        is_dir = target.is_dir()
        rel_path = rel.as_posix()
        verdict = self._resolve(target if is_dir else target.parent, rel_path, is_dir=is_dir)
        if verdict is not None:
            return verdict

        if not is_dir:
            # An ignored ancestor directory hides everything beneath it
            current = self._root
            dir_parts = rel.parts[:-1]
            for i, part in enumerate(dir_parts):
                current = current / part
                component = "/".join(dir_parts[: i + 1])
                if self._resolve(current, component, is_dir=True) is True:
                    return True

        return False

    def is_denied(self, path: Path | str) -> bool:
        """Check the static deny-lists. Always False without a DenyList."""
        if self._deny_list is None:
            return False
        try:
            rel = self._to_absolute(path).relative_to(self._root)
        except ValueError:
            return False
        return self._deny_list.is_denied(rel.as_posix())

    def is_excluded(self, path: Path | str) -> bool:
        return self.is_ignored(path) or self.is_denied(path)

    def filter_paths(self, paths: Iterable[Path], *, max_workers: int | None = None) -> list[Path]:
        """Drop ignored paths, checking them in parallel.

        Every non-ignored input appears exactly once; callers must not rely on order.
        """
        candidates = list(paths)
        if not candidates:
            return []
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="codesearch-filter") as executor:
            flags = list(executor.map(self.is_ignored, candidates))
        return [path for path, ignored in zip(candidates, flags, strict=True) if not ignored]
