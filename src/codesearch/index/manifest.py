"""Manifests: persisted path -> content-hash snapshots per codebase.

A manifest lives at ``{data_dir}/manifests/{codebase_id}.json`` and is only
ever replaced whole, via a temp file and ``os.replace``, so an interrupted
run leaves the previous snapshot in place.
"""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from codesearch.core.errors import IndexingError

log = structlog.get_logger()

HASH_LENGTH = 16

Manifest = dict[str, str]


def _short_sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:HASH_LENGTH]


def content_hash(data: bytes) -> str:
    """First 16 hex chars of the SHA-256 of raw file bytes."""
    return _short_sha256(data)


def codebase_id(root: Path) -> str:
    """Deterministic ID for a codebase from its canonical absolute path.

    Raises:
        IndexingError: If the path doesn't exist.
    """
    try:
        canonical = root.resolve(strict=True)
    except OSError as e:
        raise IndexingError.io_error(str(root), str(e)) from e
    return _short_sha256(str(canonical).encode())


@dataclass
class ChangeSet:
    """Per-run difference between the scanned tree and the last manifest."""

    added: list[tuple[str, str]] = field(default_factory=list)
    modified: list[tuple[str, str]] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed)

    @property
    def to_index(self) -> list[tuple[str, str]]:
        """Added then modified (path, hash) pairs."""
        return [*self.added, *self.modified]


def diff(current: Mapping[str, str], manifest: Mapping[str, str]) -> ChangeSet:
    """Compare current path -> hash against a manifest.

    Pure function. A full re-index is ``diff(current, {})``.
    """
    changes = ChangeSet()
    for path, digest in current.items():
        previous = manifest.get(path)
        if previous is None:
            changes.added.append((path, digest))
        elif previous != digest:
            changes.modified.append((path, digest))
    changes.removed.extend(path for path in manifest if path not in current)
    return changes


class ManifestStore:
    """Reads and atomically writes per-codebase manifests."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, cid: str) -> Path:
        return self.directory / f"{cid}.json"

    def exists(self, cid: str) -> bool:
        return self.path_for(cid).exists()

    def load(self, cid: str) -> Manifest:
        """Load a manifest; a missing file is an empty manifest.

        Raises:
            IndexingError: On unreadable or malformed manifest files.
        """
        path = self.path_for(cid)
        if not path.exists():
            return {}
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise IndexingError.manifest_error(str(path), str(e)) from e
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise IndexingError.serialization(str(path), str(e)) from e
        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise IndexingError.serialization(str(path), "expected an object of string -> string")
        return data

    def save(self, cid: str, manifest: Mapping[str, str]) -> Path:
        """Replace the manifest file in one step.

        Raises:
            IndexingError: On any write failure; the previous file is untouched.
        """
        path = self.path_for(cid)
        try:
            payload = json.dumps(dict(sorted(manifest.items())), indent=2)
        except (TypeError, ValueError) as e:
            raise IndexingError.serialization(str(path), str(e)) from e

        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.directory,
                prefix=f".{cid}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise IndexingError.manifest_error(str(path), str(e)) from e

        log.debug("manifest.saved", path=str(path), entries=len(manifest))
        return path

    def delete(self, cid: str) -> bool:
        """Remove a manifest file, returning whether one existed."""
        path = self.path_for(cid)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise IndexingError.manifest_error(str(path), str(e)) from e
        return True
