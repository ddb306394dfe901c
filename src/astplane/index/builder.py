"""Full index build for one directory.

Pipeline: Discovery -> Parse -> Extract -> Write -> Swap

Every build starts from an empty store. Rows go into a sibling database
(``index.db.building``) which replaces the live one with ``os.replace`` only
after the write transaction commits, so a reader sees either the previous
index or the new one and never a half-written store.

Usage::

    builder = IndexBuilder(Path("app"), Path("app/.astplane/index.db"))
    result = builder.build()
    print(result.files_indexed, result.symbols_indexed)
"""

from __future__ import annotations

import os
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from astplane.config.constants import BUILD_SUFFIX
from astplane.config.models import AstPlaneConfig
from astplane.core.errors import ParseFailure
from astplane.core.progress import progress
from astplane.index._internal.db import Database
from astplane.index._internal.discovery import SourceScanner
from astplane.index._internal.indexing import SymbolExtractor
from astplane.index._internal.parsing import RubyTreeAdapter
from astplane.index.models import File, Reference, ReferenceRecord, Symbol, SymbolRecord

log = structlog.get_logger(__name__)

# One adapter per process; tree-sitter parsers are not shared across workers
_adapter: RubyTreeAdapter | None = None


def _get_adapter() -> RubyTreeAdapter:
    global _adapter
    if _adapter is None:
        _adapter = RubyTreeAdapter()
    return _adapter


@dataclass
class FileExtraction:
    """Everything a build needs from one file (worker output, picklable)."""

    file_path: str
    tree_json: str | None = None
    line_count: int = 0
    symbols: list[SymbolRecord] = field(default_factory=list)
    references: list[ReferenceRecord] = field(default_factory=list)
    skipped_nodes: int = 0
    empty: bool = False
    error: str | None = None


@dataclass
class BuildResult:
    """Statistics from a build."""

    db_path: Path
    files_indexed: int = 0
    files_skipped: int = 0
    symbols_indexed: int = 0
    references_indexed: int = 0
    errors: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0


def _extract_file(file_path: str, root_dir: str, store_source_text: bool) -> FileExtraction:
    """Parse and extract a single file (worker function)."""
    result = FileExtraction(file_path=file_path)

    try:
        content = (Path(root_dir) / file_path).read_bytes()
    except OSError as e:
        result.error = f"read failed: {e}"
        return result

    try:
        parsed = _get_adapter().parse(file_path, content)
    except ParseFailure as e:
        result.error = e.message
        return result
    except Exception as e:
        result.error = f"parse crashed: {type(e).__name__}: {e}"
        return result

    result.line_count = parsed.line_count
    if parsed.root is None:
        result.empty = True
        return result

    # A failure here drops the whole file; the build carries on
    try:
        extraction = SymbolExtractor(store_source_text=store_source_text).extract(
            file_path, parsed.root, parsed.source
        )
        tree_json = parsed.root.to_json()
    except Exception as e:
        result.error = f"extraction failed: {type(e).__name__}: {e}"
        return result

    result.tree_json = tree_json
    result.symbols = extraction.symbols
    result.references = extraction.references
    result.skipped_nodes = extraction.skipped_nodes
    return result


class IndexBuilder:
    """Builds a fresh index for every source file under ``target_dir``."""

    def __init__(
        self,
        target_dir: Path,
        db_path: Path,
        config: AstPlaneConfig | None = None,
    ) -> None:
        self.target_dir = target_dir
        self.db_path = db_path
        self.config = config or AstPlaneConfig()

    def build(self, *, show_progress: bool = False) -> BuildResult:
        start = time.monotonic()
        result = BuildResult(db_path=self.db_path)

        scan = SourceScanner(self.target_dir, self.config.index).scan()
        result.files_skipped += len(scan.skipped_too_large)
        log.info("build_started", target_dir=str(self.target_dir), files=len(scan.files))

        extractions = self._extract(scan.files, show_progress=show_progress)
        extractions.sort(key=lambda e: e.file_path)

        staging_path = self.db_path.with_name(self.db_path.name + BUILD_SUFFIX)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        _remove_database_files(staging_path)

        db = Database(staging_path)
        try:
            db.create_all()
            with db.bulk_writer() as writer:
                for extraction in extractions:
                    if extraction.error is not None:
                        result.files_skipped += 1
                        result.errors.append(f"{extraction.file_path}: {extraction.error}")
                        log.warning(
                            "file_skipped", file_path=extraction.file_path, reason=extraction.error
                        )
                        continue
                    if extraction.empty:
                        result.files_skipped += 1
                        log.info("file_empty", file_path=extraction.file_path)
                        continue

                    file_id = writer.insert_returning_id(
                        File,
                        {
                            "file_path": extraction.file_path,
                            "root_tree": extraction.tree_json,
                            "line_count": extraction.line_count,
                        },
                    )
                    result.symbols_indexed += writer.insert_many(
                        Symbol, [s.to_row(file_id) for s in extraction.symbols]
                    )
                    result.references_indexed += writer.insert_many(
                        Reference, [r.to_row(file_id) for r in extraction.references]
                    )
                    result.files_indexed += 1
            db.checkpoint()
        finally:
            db.dispose()

        _remove_database_files(self.db_path, sidecars_only=True)
        os.replace(staging_path, self.db_path)

        result.duration_seconds = time.monotonic() - start
        log.info(
            "build_complete",
            db_path=str(self.db_path),
            files_indexed=result.files_indexed,
            files_skipped=result.files_skipped,
            symbols=result.symbols_indexed,
            references=result.references_indexed,
            duration_seconds=round(result.duration_seconds, 3),
        )
        return result

    def _extract(self, file_paths: list[str], *, show_progress: bool) -> list[FileExtraction]:
        workers = self.config.indexer.max_workers
        if workers > 1 and len(file_paths) > 1:
            return self._parallel_extract(file_paths, workers)
        return self._sequential_extract(file_paths, show_progress=show_progress)

    def _sequential_extract(
        self, file_paths: list[str], *, show_progress: bool
    ) -> list[FileExtraction]:
        root = str(self.target_dir)
        store_source_text = self.config.indexer.store_source_text
        return [
            _extract_file(path, root, store_source_text)
            for path in progress(file_paths, desc="Indexing", force=show_progress)
        ]

    def _parallel_extract(self, file_paths: list[str], workers: int) -> list[FileExtraction]:
        """Extract in a process pool; a crashed worker fails only its file."""
        results: list[FileExtraction] = []
        root = str(self.target_dir)
        store_source_text = self.config.indexer.store_source_text

        with ProcessPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(_extract_file, path, root, store_source_text): path
                for path in file_paths
            }
            for future in as_completed(futures):
                path = futures[future]
                try:
                    results.append(future.result())
                except Exception as e:
                    log.error("extract_worker_failed", file_path=path, error=str(e))
                    results.append(FileExtraction(file_path=path, error=str(e)))

        return results


def _remove_database_files(db_path: Path, *, sidecars_only: bool = False) -> None:
    """Delete a SQLite database and its WAL/SHM sidecars if present."""
    suffixes = ["-wal", "-shm"] if sidecars_only else ["", "-wal", "-shm"]
    for suffix in suffixes:
        path = db_path.with_name(db_path.name + suffix)
        if path.exists():
            path.unlink()
