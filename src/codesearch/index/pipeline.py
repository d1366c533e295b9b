"""Incremental indexing pipeline.

One run moves through START -> SCAN -> DIFF -> PROCESS -> PERSIST ->
COMMIT_MANIFEST -> DONE, or ends in FAILED on a storage or manifest error.

Design:
- SCAN and PROCESS fan out over a ThreadPoolExecutor; workers share nothing
  but the embedding service, which serializes its own inference calls
- PERSIST and COMMIT_MANIFEST run on the calling thread only, so the store
  never sees concurrent writers within a run
- Per-file read and embedding failures become skips; anything else
  propagates and leaves the manifest file as it was before the run
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from codesearch.core.errors import CodeSearchError, EmbeddingError, IndexingError
from codesearch.core.logging import clear_run_id, set_run_id
from codesearch.index.chunker import Chunk, split_file
from codesearch.index.ignore import DenyList, PathFilter
from codesearch.index.manifest import ChangeSet, ManifestStore, codebase_id, content_hash, diff

if TYPE_CHECKING:
    from codesearch.config.models import CodeSearchConfig
    from codesearch.index.embedding import EmbeddingService
    from codesearch.index.store import ChunkStore

log = structlog.get_logger()


class RunState(Enum):
    """Indexing run state."""

    START = "start"
    SCAN = "scan"
    DIFF = "diff"
    PROCESS = "process"
    PERSIST = "persist"
    COMMIT_MANIFEST = "commit_manifest"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ScannedFile:
    """A file that survived ignore and deny-list checks, with its content hash."""

    path: str  # root-relative, POSIX separators
    absolute: Path
    hash: str
    size: int


@dataclass
class FileResult:
    """Outcome of processing one file; ``error`` is set when it was skipped."""

    path: str
    file_hash: str
    chunks: list[Chunk] = field(default_factory=list)
    error: CodeSearchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class IndexingStats:
    """Statistics from one indexing run."""

    codebase_id: str
    root: str
    files_indexed: int = 0
    files_skipped: int = 0
    files_removed: int = 0
    chunks_created: int = 0
    chunks_removed: int = 0
    duration_s: float = 0.0
    degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "codebase_id": self.codebase_id,
            "root": self.root,
            "files_indexed": self.files_indexed,
            "files_skipped": self.files_skipped,
            "files_removed": self.files_removed,
            "chunks_created": self.chunks_created,
            "chunks_removed": self.chunks_removed,
            "duration_s": round(self.duration_s, 3),
            "degraded": self.degraded,
        }


@dataclass
class _ScanResult:
    files: list[ScannedFile]
    unreadable: set[str]


class IndexingPipeline:
    """Drives one codebase from disk into the chunk store."""

    def __init__(
        self,
        store: ChunkStore,
        embedder: EmbeddingService,
        manifests: ManifestStore,
        config: CodeSearchConfig,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.manifests = manifests
        self.config = config
        self._state = RunState.START

    @property
    def state(self) -> RunState:
        return self._state

    def _enter(self, state: RunState) -> None:
        self._state = state
        log.debug("pipeline.state", state=state.value)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, root: Path, *, force: bool = False, use_gitignore: bool | None = None) -> IndexingStats:
        """Index (or incrementally re-index) the codebase at root.

        Args:
            root: Codebase root directory.
            force: Drop existing chunks and treat every file as added.
            use_gitignore: Override ``indexing.use_gitignore``.

        Raises:
            IndexingError: If root can't be resolved or walked, or the manifest
                can't be read or written.
            StorageError: On any chunk store failure.
        """
        started = time.monotonic()
        set_run_id()
        self._enter(RunState.START)
        try:
            stats = self._run(root, force=force, use_gitignore=use_gitignore)
        except Exception:
            self._state = RunState.FAILED
            log.error("pipeline.failed", root=str(root), exc_info=True)
            raise
        finally:
            clear_run_id()

        stats.duration_s = time.monotonic() - started
        self._enter(RunState.DONE)
        log.info("pipeline.complete", **stats.to_dict())
        return stats

    def _run(self, root: Path, *, force: bool, use_gitignore: bool | None) -> IndexingStats:
        cid = codebase_id(root)
        resolved = root.resolve()
        if use_gitignore is None:
            use_gitignore = self.config.indexing.use_gitignore
        stats = IndexingStats(codebase_id=cid, root=str(resolved))
        log.info("pipeline.start", root=str(resolved), codebase_id=cid, force=force)

        self._enter(RunState.SCAN)
        scan = self._scan(resolved, use_gitignore)
        current = {f.path: f.hash for f in scan.files}
        log.info("pipeline.scan_complete", files=len(current), unreadable=len(scan.unreadable))

        self._enter(RunState.DIFF)
        old_manifest = {} if force else self.manifests.load(cid)
        changes = diff(current, old_manifest)
        # A file that exists but couldn't be read this time is not "removed"
        changes.removed = [p for p in changes.removed if p not in scan.unreadable]
        unchanged = len(current) - len(changes.added) - len(changes.modified)
        log.info(
            "pipeline.diff_complete",
            added=len(changes.added),
            modified=len(changes.modified),
            removed=len(changes.removed),
            unchanged=unchanged,
        )

        self._enter(RunState.PROCESS)
        by_path = {f.path: f for f in scan.files}
        results, stats.degraded = self._process(cid, [by_path[p] for p, _ in changes.to_index])
        failed = [r for r in results if not r.ok]

        self._enter(RunState.PERSIST)
        persisted = self._persist(cid, changes, results, stats, force=force)

        self._enter(RunState.COMMIT_MANIFEST)
        new_manifest = dict(old_manifest)
        for path in changes.removed:
            new_manifest.pop(path, None)
        for result in failed:
            new_manifest.pop(result.path, None)
        new_manifest.update(persisted)
        self.manifests.save(cid, new_manifest)

        stats.files_skipped = unchanged + len(failed) + len(scan.unreadable)
        return stats

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    def scan(self, root: Path, use_gitignore: bool = True) -> list[ScannedFile]:
        """Enumerate non-excluded files under root with their content hashes."""
        try:
            resolved = root.resolve(strict=True)
        except OSError as e:
            raise IndexingError.io_error(str(root), str(e)) from e
        return self._scan(resolved, use_gitignore).files

    def _scan(self, root: Path, use_gitignore: bool) -> _ScanResult:
        deny_list = DenyList.from_config(self.config.indexing)
        path_filter = PathFilter(root, deny_list=deny_list, use_gitignore=use_gitignore)

        def _on_error(error: OSError) -> None:
            raise IndexingError.io_error(str(error.filename or root), str(error)) from error

        candidates: list[Path] = []
        for dirpath, dirnames, filenames in root.walk(on_error=_on_error):
            dirnames[:] = sorted(d for d in dirnames if not deny_list.skips_dir(d))
            candidates.extend(dirpath / name for name in sorted(filenames))

        def _check(path: Path) -> ScannedFile | str | None:
            if path_filter.is_excluded(path):
                return None
            rel = path.relative_to(root).as_posix()
            try:
                data = path.read_bytes()
            except OSError as e:
                log.warning("pipeline.file_skipped", path=rel, reason=str(e), phase="scan")
                return rel
            return ScannedFile(path=rel, absolute=path, hash=content_hash(data), size=len(data))

        files: list[ScannedFile] = []
        unreadable: set[str] = set()
        with ThreadPoolExecutor(
            max_workers=self.config.indexing.max_workers,
            thread_name_prefix="codesearch-scan",
        ) as executor:
            for outcome in executor.map(_check, candidates):
                if isinstance(outcome, ScannedFile):
                    files.append(outcome)
                elif outcome is not None:
                    unreadable.add(outcome)

        log.debug("pipeline.scan_filtered", candidates=len(candidates), kept=len(files))
        return _ScanResult(files=files, unreadable=unreadable)

    # ------------------------------------------------------------------
    # Process
    # ------------------------------------------------------------------

    def _process(self, cid: str, files: Sequence[ScannedFile]) -> tuple[list[FileResult], bool]:
        """Chunk and embed files in parallel. Returns (results, degraded)."""
        if not files:
            return [], False

        degraded = not self.embedder.is_available()
        if degraded:
            log.warning(
                "embedding.degraded",
                model=self.embedder.model_type.model_name,
                hint="chunks get zero vectors; lexical search still works",
            )

        def _work(scanned: ScannedFile) -> FileResult:
            return self._process_file(scanned, cid, degraded=degraded)

        with ThreadPoolExecutor(
            max_workers=self.config.indexing.max_workers,
            thread_name_prefix="codesearch-indexer",
        ) as executor:
            results = list(executor.map(_work, files))
        return results, degraded

    def _process_file(self, scanned: ScannedFile, cid: str, *, degraded: bool) -> FileResult:
        result = FileResult(path=scanned.path, file_hash=scanned.hash)
        try:
            text = scanned.absolute.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result.error = IndexingError.file_read(scanned.path, str(e))
            log.warning("pipeline.file_skipped", path=scanned.path, reason=str(e), phase="read")
            return result

        chunking = self.config.chunking
        chunks = split_file(
            scanned.path,
            text,
            chunking.chunk_size,
            chunking.chunk_overlap,
            codebase_id=cid,
            file_hash=scanned.hash,
        )
        if not chunks:
            return result

        if degraded:
            for chunk in chunks:
                chunk.embedding = self.embedder.zero_vector()
        else:
            try:
                vectors = self.embedder.embed_batch(
                    [c.content for c in chunks],
                    batch_size=self.config.indexing.batch_size,
                )
            except EmbeddingError as e:
                result.error = e
                log.warning("pipeline.file_skipped", path=scanned.path, reason=e.message, phase="embed")
                return result
            for chunk, vector in zip(chunks, vectors, strict=True):
                chunk.embedding = vector

        result.chunks = chunks
        return result

    # ------------------------------------------------------------------
    # Persist
    # ------------------------------------------------------------------

    def _persist(
        self,
        cid: str,
        changes: ChangeSet,
        results: Sequence[FileResult],
        stats: IndexingStats,
        *,
        force: bool,
    ) -> dict[str, str]:
        """Apply removals and replacements in order. Returns path -> hash persisted."""
        if force:
            stats.chunks_removed += self.store.delete_codebase(cid)

        for path in changes.removed:
            stats.chunks_removed += self.store.delete_file_chunks(cid, path)
            stats.files_removed += 1

        persisted: dict[str, str] = {}
        for result in results:
            if not result.ok:
                # A skipped file keeps neither its manifest entry nor its old chunks
                stats.chunks_removed += self.store.delete_file_chunks(cid, result.path)
                continue
            removed, inserted = self.store.replace_file_chunks(cid, result.path, result.chunks)
            stats.chunks_removed += removed
            stats.chunks_created += inserted
            stats.files_indexed += 1
            persisted[result.path] = result.file_hash
        return persisted
