"""Version information for the feature discovery tools."""

from __future__ import annotations

VERSION = "unknown"
GIT_COMMIT = ""


def get_version_parts(version: str = VERSION, git_commit: str = GIT_COMMIT) -> list[str]:
    """Return the version components: the version and, if known, the commit."""
    parts = [version]
    if git_commit:
        parts.append("commit: " + git_commit)
    return parts


def get_version_string(*args: str, version: str = VERSION, git_commit: str = GIT_COMMIT) -> str:
    """Return the version components and any extra lines joined by newlines."""
    return "\n".join([*get_version_parts(version, git_commit), *args])