"""
Data models shared by the scanning, hashing and detection stages.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PATTERN_SYNTAXES = ("glob", "regex")

_MAX_WARNINGS_PER_KIND = 5


def display_path(path: str) -> str:
    """
    Render a path for terminal output.

    Names that are not valid UTF-8 come back from the OS with surrogate
    escapes, which a UTF-8 stream refuses to encode. Invalid bytes are shown
    as U+FFFD instead. Keep the raw string for opening the file.
    """
    return os.fsencode(path).decode("utf-8", "replace")


@dataclass(frozen=True)
class FileCandidate:
    """A regular file that passed every filter and is eligible for comparison."""
    path: str
    size: int


@dataclass(frozen=True)
class ScanConfig:
    """Read-only settings for one scan."""
    root: str = "."
    include_pattern: Optional[str] = None
    skip_pattern: Optional[str] = None
    min_size: int = 0
    pattern_syntax: str = "glob"
    max_workers: Optional[int] = None

    def validate(self) -> None:
        """
        Check the configuration before any traversal starts.

        Raises:
            ConfigurationError: if the root is not an existing directory or
                any other field is out of range
        """
        if not os.path.exists(self.root):
            raise ConfigurationError(f"Path '{self.root}' does not exist")
        if not os.path.isdir(self.root):
            raise ConfigurationError(f"Path '{self.root}' is not a directory")
        if self.min_size < 0:
            raise ConfigurationError(f"Minimum size must be non-negative, got {self.min_size}")
        if self.pattern_syntax not in PATTERN_SYNTAXES:
            raise ConfigurationError(
                f"Unknown pattern syntax '{self.pattern_syntax}' "
                f"(expected one of: {', '.join(PATTERN_SYNTAXES)})"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError(f"Worker count must be at least 1, got {self.max_workers}")
        if self.pattern_syntax == "regex":
            for pattern in (self.include_pattern, self.skip_pattern):
                if pattern:
                    try:
                        re.compile(pattern)
                    except re.error as e:
                        raise ConfigurationError(f"Invalid regular expression '{pattern}': {e}") from e


class DiagnosticKind(Enum):
    """Reasons an entry can be skipped without aborting the scan."""
    PERMISSION_DENIED = "permission_denied"
    BROKEN_SYMLINK = "broken_symlink"
    SYMLINK_LOOP = "symlink_loop"
    SYMLINKED_DIRECTORY = "symlinked_directory"
    VANISHED = "vanished"
    UNREADABLE = "unreadable"
    NOT_REGULAR_FILE = "not_regular_file"
    ALREADY_SCANNED = "already_scanned"
    DIGEST_ERROR = "digest_error"
    CHANGED_DURING_SCAN = "changed_during_scan"


@dataclass(frozen=True)
class Diagnostic:
    """One non-fatal skip event."""
    path: str
    reason: str
    kind: DiagnosticKind

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "reason": self.reason, "kind": self.kind.value}


class DiagnosticLog:
    """
    Collects diagnostics for a scan and logs them with per-kind rate limiting.

    Only the thread driving the scan writes to it.
    """

    def __init__(self):
        self.entries: List[Diagnostic] = []
        self.skipped_items: Dict[DiagnosticKind, int] = {kind: 0 for kind in DiagnosticKind}

    def add(self, path: str, reason: str, kind: DiagnosticKind) -> Diagnostic:
        diagnostic = Diagnostic(path=str(path), reason=reason, kind=kind)
        self.entries.append(diagnostic)

        count = self.skipped_items[kind]
        self.skipped_items[kind] = count + 1  # Always count, even when suppressed

        if kind is DiagnosticKind.SYMLINKED_DIRECTORY:
            logger.debug("Skipping %s: %s", display_path(diagnostic.path), display_path(reason))
        elif count < _MAX_WARNINGS_PER_KIND:
            logger.warning("⚠️  Skipping %s: %s", display_path(diagnostic.path), display_path(reason))
        elif count == _MAX_WARNINGS_PER_KIND:
            kind_name = kind.value.replace('_', ' ').title()
            logger.warning("⚠️  %s: Additional warnings suppressed...", kind_name)
        return diagnostic

    def summary(self) -> Dict[str, int]:
        """Counts of skipped entries per kind, omitting kinds that never occurred."""
        return {kind.value: count for kind, count in self.skipped_items.items() if count}

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class SizeBucket:
    """Candidates that share one exact byte size."""
    size: int
    candidates: List[FileCandidate] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.candidates)


@dataclass(frozen=True)
class DuplicateGroup:
    """Files verified to have byte-identical content."""
    size_bytes: int
    content_digest: str
    paths: Tuple[str, ...]

    @property
    def count(self) -> int:
        """Number of files in this group."""
        return len(self.paths)

    @property
    def representative(self) -> str:
        """Lexicographically smallest path in the group."""
        return self.paths[0]

    @property
    def total_size(self) -> int:
        return self.size_bytes * self.count

    @property
    def wasted_size(self) -> int:
        """Space held by every copy except one."""
        return self.size_bytes * (self.count - 1)

    def to_dict(self) -> dict:
        return {
            "size_bytes": self.size_bytes,
            "content_digest": self.content_digest,
            "paths": list(self.paths),
            "count": self.count,
        }


@dataclass
class ScanStats:
    """Counters gathered while a scan runs."""
    files_scanned: int = 0
    bytes_scanned: int = 0
    filtered_out: int = 0
    unique_by_size: int = 0
    partial_hashed: int = 0
    full_hashed: int = 0
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "files_scanned": self.files_scanned,
            "bytes_scanned": self.bytes_scanned,
            "filtered_out": self.filtered_out,
            "unique_by_size": self.unique_by_size,
            "partial_hashed": self.partial_hashed,
            "full_hashed": self.full_hashed,
            "elapsed_ms": int(self.elapsed_seconds * 1000),
        }


@dataclass
class ScanReport:
    """Everything a scan produces: the groups, the skips and the counters."""
    groups: List[DuplicateGroup]
    diagnostics: List[Diagnostic]
    stats: ScanStats

    @property
    def duplicate_files_count(self) -> int:
        return sum(group.count for group in self.groups)

    @property
    def total_duplicate_size(self) -> int:
        return sum(group.total_size for group in self.groups)

    @property
    def potential_savings(self) -> int:
        return sum(group.wasted_size for group in self.groups)
