"""
lsdups - list files with identical content under a directory.
"""

from .detector import DuplicateResolver, SizeBucketer, find_duplicates
from .exceptions import ConfigurationError, DigestError, LsdupsError, ScanCancelled
from .models import Diagnostic, DiagnosticKind, DuplicateGroup, FileCandidate, ScanConfig, ScanReport

__version__ = "1.0.0"

__all__ = [
    "ConfigurationError",
    "Diagnostic",
    "DiagnosticKind",
    "DigestError",
    "DuplicateGroup",
    "DuplicateResolver",
    "FileCandidate",
    "LsdupsError",
    "ScanCancelled",
    "ScanConfig",
    "ScanReport",
    "SizeBucketer",
    "find_duplicates",
]
