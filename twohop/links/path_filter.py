"""Exclusion rules for vault paths."""

from typing import Iterable


def is_excluded(path: str, exclude_paths: Iterable[str]) -> bool:
    """Check a vault path against a list of exclusion rules.

    A rule ending in ``/`` excludes everything inside that folder, matched on
    whole path segments: ``foo/`` covers ``foo/bar.md`` but not ``foobar/x.md``.
    Any other rule must equal the path exactly.

    Args:
        path: Vault-relative path of the candidate note
        exclude_paths: Exclusion rules

    Returns:
        True if some rule matches
    """
    path_segments = path.split("/")
    for rule in exclude_paths:
        if not rule:
            continue
        if rule.endswith("/"):
            folder_segments = rule.rstrip("/").split("/")
            if path_segments[: len(folder_segments)] == folder_segments and len(
                path_segments
            ) > len(folder_segments):
                return True
        elif path == rule:
            return True
    return False


class PathFilter:
    """Exclusion list bound to a fixed set of rules."""

    def __init__(self, exclude_paths: Iterable[str] | None = None):
        self.exclude_paths = [rule for rule in (exclude_paths or []) if rule]

    def is_excluded(self, path: str) -> bool:
        return is_excluded(path, self.exclude_paths)

    def filter(self, paths: Iterable[str]) -> list[str]:
        """Keep only paths no rule matches."""
        return [path for path in paths if not self.is_excluded(path)]
