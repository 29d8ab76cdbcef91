"""
Duplicate file detection logic with multi-stage optimization.
"""

import logging
import threading
import time
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from .exceptions import ScanCancelled
from .filters import PathFilter
from .hasher import EMPTY_DIGEST, PARTIAL_HASH_SIZE
from .models import (
    DiagnosticLog,
    DuplicateGroup,
    FileCandidate,
    ScanConfig,
    ScanReport,
    ScanStats,
    SizeBucket,
)
from .parallel_hasher import parallel_hash_files
from .scanner import walk_candidates

logger = logging.getLogger(__name__)


class SizeBucketer:
    """Group candidates by exact byte size."""

    def __init__(self):
        self._buckets: Dict[int, List[FileCandidate]] = defaultdict(list)

    def insert(self, candidate: FileCandidate) -> None:
        self._buckets[candidate.size].append(candidate)

    def __len__(self) -> int:
        return sum(len(group) for group in self._buckets.values())

    @property
    def unique_count(self) -> int:
        """Files whose size no other file shares."""
        return sum(1 for group in self._buckets.values() if len(group) == 1)

    def drain_multi_member_buckets(self) -> List[SizeBucket]:
        """
        Hand over every bucket with at least two members, largest size first.

        Single-member buckets are dropped. The bucketer is empty afterwards.
        """
        buckets = [
            SizeBucket(size=size, candidates=group)
            for size, group in self._buckets.items()
            if len(group) > 1
        ]
        self._buckets = defaultdict(list)
        buckets.sort(key=lambda bucket: bucket.size, reverse=True)
        return buckets


class DuplicateResolver:
    """
    Refine size buckets into verified duplicate groups.

    Stage 2 splits every bucket by partial digest, stage 3 splits the
    surviving sub-buckets by full digest. Each stage hashes all of its files
    in parallel, then partitions the results on the calling thread.
    """

    def __init__(
        self,
        diagnostics: DiagnosticLog,
        stats: Optional[ScanStats] = None,
        max_workers: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
        quiet: bool = False,
    ):
        self.diagnostics = diagnostics
        self.stats = stats if stats is not None else ScanStats()
        self.max_workers = max_workers
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.quiet = quiet

    def resolve(self, buckets: Iterable[SizeBucket]) -> List[DuplicateGroup]:
        """
        Turn size buckets into duplicate groups.

        Args:
            buckets: Buckets whose members all share one size

        Returns:
            Groups sorted by member count descending, then by representative path

        Raises:
            ScanCancelled: if cancellation is requested mid-way
        """
        groups: List[DuplicateGroup] = []
        to_hash: List[SizeBucket] = []

        for bucket in buckets:
            if len(bucket) < 2:
                continue
            if bucket.size == 0:
                # Empty files are identical by definition
                groups.append(_make_group(0, EMPTY_DIGEST, bucket.candidates))
            else:
                to_hash.append(bucket)

        if to_hash:
            logger.info("\n=== Stage 2: Partial hash comparison ===")
            partial_groups, partial_digests = self._split_by_partial_digest(to_hash)
            logger.info("  %d files need full content comparison", sum(len(g) for g in partial_groups))

            logger.info("\n=== Stage 3: Full hash comparison ===")
            for (size, digest), members in self._verify(partial_groups, partial_digests).items():
                if len(members) > 1:
                    groups.append(_make_group(size, digest, members))

        return sort_groups(groups)

    def _split_by_partial_digest(
        self, buckets: List[SizeBucket]
    ) -> Tuple[List[SizeBucket], Dict[FileCandidate, str]]:
        candidates = [candidate for bucket in buckets for candidate in bucket.candidates]
        digests = self._hash(candidates, partial=True)

        sub_buckets: Dict[Tuple[int, str], List[FileCandidate]] = defaultdict(list)
        for bucket in buckets:
            for candidate in bucket.candidates:
                digest = digests.get(candidate)
                if digest is not None:
                    sub_buckets[(bucket.size, digest)].append(candidate)

        survivors = [
            SizeBucket(size=size, candidates=members)
            for (size, _), members in sub_buckets.items()
            if len(members) > 1
        ]
        return survivors, digests

    def _verify(
        self, buckets: List[SizeBucket], partial_digests: Dict[FileCandidate, str]
    ) -> Dict[Tuple[int, str], List[FileCandidate]]:
        full_digests: Dict[FileCandidate, str] = {}

        # A partial digest over a file no longer than the sample is already its full digest
        needs_read = []
        for bucket in buckets:
            for candidate in bucket.candidates:
                if bucket.size <= PARTIAL_HASH_SIZE:
                    full_digests[candidate] = partial_digests[candidate]
                else:
                    needs_read.append(candidate)
        full_digests.update(self._hash(needs_read, partial=False))

        verified: Dict[Tuple[int, str], List[FileCandidate]] = defaultdict(list)
        for bucket in buckets:
            for candidate in bucket.candidates:
                digest = full_digests.get(candidate)
                if digest is not None:
                    verified[(bucket.size, digest)].append(candidate)
        return verified

    def _hash(self, candidates: List[FileCandidate], partial: bool) -> Dict[FileCandidate, str]:
        if not candidates:
            return {}
        if partial:
            self.stats.partial_hashed += len(candidates)
        else:
            self.stats.full_hashed += len(candidates)
        return parallel_hash_files(
            candidates,
            self.diagnostics,
            partial=partial,
            desc="Partial hashing" if partial else "Full hashing",
            quiet=self.quiet,
            max_workers=self.max_workers,
            cancel_event=self.cancel_event,
        )


def _make_group(size: int, digest: str, members: Iterable[FileCandidate]) -> DuplicateGroup:
    return DuplicateGroup(
        size_bytes=size,
        content_digest=digest,
        paths=tuple(sorted(candidate.path for candidate in members)),
    )


def sort_groups(groups: Iterable[DuplicateGroup]) -> List[DuplicateGroup]:
    """Order groups by member count descending, then by representative path."""
    return sorted(groups, key=lambda group: (-group.count, group.representative))


def find_duplicates(
    config: ScanConfig,
    cancel_event: Optional[threading.Event] = None,
    quiet: bool = False,
) -> ScanReport:
    """
    Find duplicate files under ``config.root`` using multi-stage comparison.

    Stage 1: Group by file size
    Stage 2: Partial hash (first 4KB) for same-size files
    Stage 3: Full hash only when partial hashes match

    Args:
        config: What to scan and which files to consider
        cancel_event: Set from another thread to abandon the scan
        quiet: Suppress progress bars

    Returns:
        ScanReport with the ordered duplicate groups, every diagnostic and
        the scan counters

    Raises:
        ConfigurationError: if ``config`` is invalid; nothing is scanned
        ScanCancelled: if the scan is cancelled or interrupted
    """
    config.validate()
    if cancel_event is None:
        cancel_event = threading.Event()

    start = time.monotonic()
    diagnostics = DiagnosticLog()
    stats = ScanStats()
    path_filter = PathFilter.from_config(config)
    logger.debug("Include matcher: %r", path_filter.include)
    logger.debug("Skip matcher: %r", path_filter.skip)

    try:
        logger.info("\n=== Stage 1: Grouping files by size ===")
        bucketer = SizeBucketer()
        for candidate in walk_candidates(config.root, path_filter, diagnostics, stats, cancel_event, quiet):
            bucketer.insert(candidate)

        stats.unique_by_size = bucketer.unique_count
        buckets = bucketer.drain_multi_member_buckets()
        logger.info("  Found %d files, %d sizes shared by more than one file", stats.files_scanned, len(buckets))
        logger.info("  %d files are unique by size alone", stats.unique_by_size)

        resolver = DuplicateResolver(
            diagnostics,
            stats=stats,
            max_workers=config.max_workers,
            cancel_event=cancel_event,
            quiet=quiet,
        )
        groups = resolver.resolve(buckets)
    except KeyboardInterrupt:
        cancel_event.set()
        raise ScanCancelled("Scan interrupted") from None

    # A cancel that lands after the last hashing stage still discards the results
    if cancel_event.is_set():
        raise ScanCancelled("Scan cancelled")

    stats.elapsed_seconds = time.monotonic() - start
    logger.info("  Found %d groups of duplicate files", len(groups))
    return ScanReport(groups=groups, diagnostics=list(diagnostics.entries), stats=stats)
