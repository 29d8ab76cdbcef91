"""Custom exception hierarchy."""


class LsdupsError(Exception):
    """Base exception for all lsdups errors."""


class ConfigurationError(LsdupsError):
    """Scan configuration is invalid (missing root, bad pattern, ...)."""


class DigestError(LsdupsError):
    """A file could not be digested after it was sized."""

    def __init__(self, path: str, reason: str, kind=None):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
        self.kind = kind


class ScanCancelled(Exception):
    """The scan was cancelled before it produced a result.

    Not an ``LsdupsError``: cancellation is an outcome, not a failure.
    """
