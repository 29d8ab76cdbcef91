"""
Parallel file hashing utilities for improved I/O performance.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional

from tqdm import tqdm

from .exceptions import DigestError, ScanCancelled
from .hasher import calculate_file_hash
from .models import DiagnosticKind, DiagnosticLog, FileCandidate

logger = logging.getLogger(__name__)


def get_optimal_worker_count() -> int:
    """
    Determine the number of hashing threads from the CPU count.

    Hashing is I/O bound, so two threads per CPU, capped at 16.
    """
    cpu_count = os.cpu_count() or 4
    return min(cpu_count * 2, 16)


def parallel_hash_files(
    candidates: List[FileCandidate],
    diagnostics: DiagnosticLog,
    partial: bool = False,
    desc: str = "Hashing files",
    quiet: bool = False,
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Dict[FileCandidate, str]:
    """
    Hash many files in parallel using ThreadPoolExecutor.

    Workers only compute digests; this function is the single consumer of
    their results, so the returned mapping and ``diagnostics`` are written
    from one thread.

    Args:
        candidates: Files to hash
        diagnostics: Receives one entry per file that could not be hashed
        partial: If True, only hash the leading sample of each file
        desc: Description for progress bar
        quiet: Suppress progress output
        max_workers: Maximum number of worker threads (None for auto)
        cancel_event: Shared cancellation signal; set here on KeyboardInterrupt

    Returns:
        Mapping of each successfully hashed candidate to its hex digest.
        Candidates that failed are absent.

    Raises:
        ScanCancelled: if the scan was cancelled while hashing
    """
    if not candidates:
        return {}

    if max_workers is None:
        max_workers = get_optimal_worker_count()
    if cancel_event is None:
        cancel_event = threading.Event()
    if cancel_event.is_set():
        raise ScanCancelled(f"{desc} cancelled before it started")

    logger.debug("  Using %d parallel workers for %s", max_workers, desc.lower())

    results: Dict[FileCandidate, str] = {}
    executor = ThreadPoolExecutor(max_workers=max_workers)
    try:
        future_to_candidate = {
            executor.submit(
                calculate_file_hash, candidate.path, partial, candidate.size, cancel_event
            ): candidate
            for candidate in candidates
        }

        with tqdm(total=len(candidates), desc=desc, unit=" files", disable=quiet, leave=False) as pbar:
            for future in as_completed(future_to_candidate):
                candidate = future_to_candidate[future]
                try:
                    results[candidate] = future.result()
                except DigestError as e:
                    diagnostics.add(candidate.path, e.reason, e.kind or DiagnosticKind.DIGEST_ERROR)
                finally:
                    pbar.update(1)
    except KeyboardInterrupt:
        cancel_event.set()
        raise ScanCancelled(f"{desc} interrupted") from None
    except ScanCancelled:
        cancel_event.set()
        raise
    finally:
        # Running workers see the event and stop at their next chunk
        executor.shutdown(wait=True, cancel_futures=cancel_event.is_set())

    return results
