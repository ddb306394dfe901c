"""Source file discovery for a build.

Walks the target directory once, pruning excluded directory names, and keeps
files that match an include glob and fit under the size limit. Paths come back
relative to the target directory, POSIX-style, sorted.
"""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from astplane.config.models import IndexConfig

log = structlog.get_logger(__name__)


def matches_glob(rel_path: str, pattern: str) -> bool:
    """Check if a path matches a glob pattern, with ** support."""
    if fnmatch.fnmatch(rel_path, pattern):
        return True
    # Handle **/pattern for any-depth matching, top level included
    if pattern.startswith("**/"):
        return fnmatch.fnmatch(rel_path, pattern[3:])
    return False


@dataclass
class ScanResult:
    files: list[str] = field(default_factory=list)
    skipped_too_large: list[str] = field(default_factory=list)


class SourceScanner:
    """Finds indexable source files under one directory."""

    def __init__(self, root: Path, config: IndexConfig | None = None) -> None:
        self.root = root
        self.config = config or IndexConfig()

    def scan(self) -> ScanResult:
        result = ScanResult()
        excluded = set(self.config.excluded_dirs)
        max_bytes = self.config.max_file_size_mb * 1024 * 1024

        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if d not in excluded)
            rel_dir = Path(dirpath).relative_to(self.root).as_posix()
            for filename in filenames:
                rel_path = filename if rel_dir == "." else f"{rel_dir}/{filename}"
                if not any(matches_glob(rel_path, g) for g in self.config.include_globs):
                    continue
                try:
                    size = (Path(dirpath) / filename).stat().st_size
                except OSError as e:
                    log.warning("file_stat_failed", file_path=rel_path, error=str(e))
                    continue
                if size > max_bytes:
                    result.skipped_too_large.append(rel_path)
                    log.info("file_too_large", file_path=rel_path, size_bytes=size)
                    continue
                result.files.append(rel_path)

        result.files.sort()
        log.debug("scan_complete", root=str(self.root), files=len(result.files))
        return result
