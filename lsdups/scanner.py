"""
Directory scanning functionality.
"""

import errno
import os
import stat
import threading
from typing import Iterator, Optional, Set

from tqdm import tqdm

from .exceptions import ScanCancelled
from .filters import PathFilter
from .models import DiagnosticKind, DiagnosticLog, FileCandidate, ScanStats


def walk_candidates(
    root: str,
    path_filter: PathFilter,
    diagnostics: DiagnosticLog,
    stats: Optional[ScanStats] = None,
    cancel_event: Optional[threading.Event] = None,
    quiet: bool = False,
) -> Iterator[FileCandidate]:
    """
    Walk ``root`` depth-first and yield every file eligible for comparison.

    Directories and files are visited in sorted name order, so the sequence
    is stable between runs on an unchanged tree. Symbolic links to
    directories are never followed. Every entry that cannot be examined is
    recorded in ``diagnostics`` and the walk carries on.

    Args:
        root: Directory to scan
        path_filter: Name and size rules for candidates
        diagnostics: Receives one entry per skipped item
        stats: Optional counters updated as files are found
        cancel_event: Checked once per directory
        quiet: Disable the progress bar

    Yields:
        FileCandidate objects with absolute paths

    Raises:
        ScanCancelled: if ``cancel_event`` is set during the walk
    """
    if stats is None:
        stats = ScanStats()
    root = os.path.abspath(root)
    seen_real_paths: Set[str] = set()

    def _on_walk_error(error: OSError) -> None:
        path = error.filename or root
        diagnostics.add(path, f"Cannot list directory: {error.strerror or error}", _kind_for_error(error))

    with tqdm(desc="Scanning", unit=" items", leave=False, disable=quiet) as pbar:
        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_walk_error, followlinks=False):
            if cancel_event is not None and cancel_event.is_set():
                raise ScanCancelled(f"Scan cancelled while walking {dirpath}")

            kept = []
            for name in sorted(dirnames):
                full_path = os.path.join(dirpath, name)
                if os.path.islink(full_path):
                    diagnostics.add(full_path, "Symbolic link to directory not followed",
                                    DiagnosticKind.SYMLINKED_DIRECTORY)
                else:
                    kept.append(name)
            dirnames[:] = kept
            pbar.update(len(dirnames))

            for name in sorted(filenames):
                pbar.update(1)
                candidate = _process_entry(
                    os.path.join(dirpath, name), name, path_filter, diagnostics, stats, seen_real_paths
                )
                if candidate is not None:
                    yield candidate

            pbar.set_postfix(files=stats.files_scanned, skipped=len(diagnostics), refresh=False)


def _process_entry(
    path: str,
    name: str,
    path_filter: PathFilter,
    diagnostics: DiagnosticLog,
    stats: ScanStats,
    seen_real_paths: Set[str],
) -> Optional[FileCandidate]:
    """Classify a single non-directory entry; return a candidate or None."""
    if not path_filter.matches_name(name):
        stats.filtered_out += 1
        return None

    is_link = os.path.islink(path)
    try:
        # Follows symlinks to files
        stat_result = os.stat(path)
    except FileNotFoundError:
        if is_link:
            diagnostics.add(path, "Broken symlink", DiagnosticKind.BROKEN_SYMLINK)
        else:
            diagnostics.add(path, "Entry vanished during scan", DiagnosticKind.VANISHED)
        return None
    except PermissionError as e:
        diagnostics.add(path, f"Permission denied ({e.strerror})", DiagnosticKind.PERMISSION_DENIED)
        return None
    except OSError as e:
        if is_link and e.errno == errno.ELOOP:
            diagnostics.add(path, "Symlink loop", DiagnosticKind.SYMLINK_LOOP)
        else:
            diagnostics.add(path, f"Cannot stat entry: {e.strerror or e}", DiagnosticKind.UNREADABLE)
        return None

    if not stat.S_ISREG(stat_result.st_mode):
        diagnostics.add(path, "Not a regular file", DiagnosticKind.NOT_REGULAR_FILE)
        return None

    if not path_filter.accepts(path, stat_result.st_size):
        stats.filtered_out += 1
        return None

    if not _is_readable(path):
        diagnostics.add(path, "Permission denied (not readable)", DiagnosticKind.PERMISSION_DENIED)
        return None

    real_path = os.path.realpath(path)
    if real_path in seen_real_paths:
        diagnostics.add(path, f"Same file as {real_path}, already scanned", DiagnosticKind.ALREADY_SCANNED)
        return None
    seen_real_paths.add(real_path)

    stats.files_scanned += 1
    stats.bytes_scanned += stat_result.st_size
    return FileCandidate(path=path, size=stat_result.st_size)


def _is_readable(path: str) -> bool:
    return os.access(path, os.R_OK)


def _kind_for_error(error: OSError) -> DiagnosticKind:
    if isinstance(error, PermissionError):
        return DiagnosticKind.PERMISSION_DENIED
    if isinstance(error, FileNotFoundError):
        return DiagnosticKind.VANISHED
    return DiagnosticKind.UNREADABLE
