"""
File hashing utilities for duplicate detection.
"""

import hashlib
import os
import threading
from typing import Optional

from .exceptions import DigestError, ScanCancelled
from .models import DiagnosticKind

# Bytes read from the start of a file for the partial digest
PARTIAL_HASH_SIZE = 4096

# Read size for full digests
CHUNK_SIZE = 65536

# SHA256 of empty content; zero-byte files are never opened
EMPTY_DIGEST = hashlib.sha256(b"").hexdigest()


def partial_digest(
    file_path: str,
    expected_size: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> str:
    """
    Calculate SHA256 of the first ``PARTIAL_HASH_SIZE`` bytes of a file.

    Files shorter than the sample are hashed whole, so for them the result
    equals :func:`full_digest`.

    Args:
        file_path: Path to the file
        expected_size: Size recorded at scan time, checked against the open file
        cancel_event: Abandon the read when set

    Returns:
        Hex string of the digest

    Raises:
        DigestError: if the file cannot be read or changed size since the scan
        ScanCancelled: if ``cancel_event`` is set
    """
    return _digest(file_path, expected_size, cancel_event, limit=PARTIAL_HASH_SIZE)


def full_digest(
    file_path: str,
    expected_size: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> str:
    """
    Calculate SHA256 of a file's entire content, read in ``CHUNK_SIZE`` chunks.

    Same arguments and errors as :func:`partial_digest`.
    """
    return _digest(file_path, expected_size, cancel_event, limit=None)


def calculate_file_hash(
    file_path: str,
    partial: bool = False,
    expected_size: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> str:
    """Dispatch to :func:`partial_digest` or :func:`full_digest`."""
    if partial:
        return partial_digest(file_path, expected_size, cancel_event)
    return full_digest(file_path, expected_size, cancel_event)


def _digest(
    file_path: str,
    expected_size: Optional[int],
    cancel_event: Optional[threading.Event],
    limit: Optional[int],
) -> str:
    if expected_size == 0:
        return EMPTY_DIGEST

    sha256_hash = hashlib.sha256()
    bytes_read = 0
    try:
        with open(file_path, "rb") as f:
            if expected_size is not None:
                current_size = os.fstat(f.fileno()).st_size
                if current_size != expected_size:
                    raise DigestError(
                        str(file_path),
                        f"size changed from {expected_size} to {current_size} bytes since scan",
                        DiagnosticKind.CHANGED_DURING_SCAN,
                    )

            remaining = limit
            while remaining is None or remaining > 0:
                if cancel_event is not None and cancel_event.is_set():
                    raise ScanCancelled(f"Digest of {file_path} abandoned")
                read_size = CHUNK_SIZE if remaining is None else min(CHUNK_SIZE, remaining)
                chunk = f.read(read_size)
                if not chunk:
                    break
                sha256_hash.update(chunk)
                bytes_read += len(chunk)
                if remaining is not None:
                    remaining -= len(chunk)

    except PermissionError as e:
        raise DigestError(str(file_path), f"Permission denied reading file: {e.strerror}",
                          DiagnosticKind.PERMISSION_DENIED) from e
    except FileNotFoundError as e:
        raise DigestError(str(file_path), "File vanished before it could be read",
                          DiagnosticKind.VANISHED) from e
    except IsADirectoryError as e:
        raise DigestError(str(file_path), "Entry became a directory",
                          DiagnosticKind.CHANGED_DURING_SCAN) from e
    except OSError as e:
        raise DigestError(str(file_path), f"I/O error reading file: {e.strerror or e}",
                          DiagnosticKind.DIGEST_ERROR) from e

    if expected_size is not None:
        wanted = expected_size if limit is None else min(expected_size, limit)
        if bytes_read != wanted:
            raise DigestError(
                str(file_path),
                f"read {bytes_read} bytes, expected {wanted}; file was truncated or modified",
                DiagnosticKind.CHANGED_DURING_SCAN,
            )

    return sha256_hash.hexdigest()
