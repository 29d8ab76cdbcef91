"""
Filename and size filtering for scan candidates.
"""

import fnmatch
import os
import re
from typing import Optional

from .models import ScanConfig


class GlobMatcher:
    """Case-sensitive shell-style match against a filename."""

    def __init__(self, pattern: str):
        self.pattern = pattern

    def matches(self, name: str) -> bool:
        return fnmatch.fnmatchcase(name, self.pattern)

    def __repr__(self) -> str:
        return f"GlobMatcher({self.pattern!r})"


class RegexMatcher:
    """
    Case-sensitive regular expression anchored at the end of the filename.

    ``\\.txt`` therefore selects files by extension and ``^report.*``
    by prefix.
    """

    def __init__(self, pattern: str):
        self.pattern = pattern
        self._regex = re.compile(f"(?:{pattern})$")

    def matches(self, name: str) -> bool:
        return self._regex.search(name) is not None

    def __repr__(self) -> str:
        return f"RegexMatcher({self._regex.pattern!r})"


def build_matcher(pattern: Optional[str], syntax: str = "glob"):
    """Build the matcher for ``pattern``, or None when no pattern is set."""
    if not pattern:
        return None
    if syntax == "regex":
        return RegexMatcher(pattern)
    return GlobMatcher(pattern)


class PathFilter:
    """
    Decide whether a regular file is eligible for duplicate comparison.

    The skip pattern always wins over the include pattern.
    """

    def __init__(self, include=None, skip=None, min_size: int = 0):
        self.include = include
        self.skip = skip
        self.min_size = min_size

    @classmethod
    def from_config(cls, config: ScanConfig) -> "PathFilter":
        return cls(
            include=build_matcher(config.include_pattern, config.pattern_syntax),
            skip=build_matcher(config.skip_pattern, config.pattern_syntax),
            min_size=config.min_size,
        )

    def matches_name(self, name: str) -> bool:
        """Apply the include and skip patterns to a bare filename."""
        if self.skip is not None and self.skip.matches(name):
            return False
        if self.include is not None and not self.include.matches(name):
            return False
        return True

    def accepts(self, entry_path: str, entry_size: int) -> bool:
        """
        Check a sized entry against every rule.

        Args:
            entry_path: Path of the entry; only its final component is matched
            entry_size: Size in bytes

        Returns:
            True if the entry should be compared
        """
        if entry_size < self.min_size:
            return False
        return self.matches_name(os.path.basename(entry_path))
