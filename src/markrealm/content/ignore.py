"""Ignore-pattern matching for content discovery and watching."""

import os
import re
from collections.abc import Iterable

# Patterns are simple: "*" becomes ".*" and the rest is used as a regex
# verbatim, so "." in a pattern matches any character.


def pattern_to_regex(pattern: str) -> re.Pattern:
    """Compile a "*" pattern into an unanchored regex."""
    return re.compile(pattern.replace("*", ".*"))


def is_ignored_path(file_path, ignore_patterns: Iterable[str]) -> bool:
    """Check whether *file_path* (relative to the working directory) is ignored."""
    relative_path = os.path.relpath(os.fspath(file_path), os.getcwd())

    for pattern in ignore_patterns:
        if "*" in pattern:
            if pattern_to_regex(pattern).search(relative_path):
                return True
        elif pattern in relative_path:
            return True
    return False
