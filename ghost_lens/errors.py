"""Error types raised inside the annotation pipeline.

None of these ever escape to the host: each component catches them at its
boundary, logs them and degrades to "show no annotations".
"""
from typing import Optional


class GhostLensError(Exception):
    """Base class for every pipeline failure."""


class NoWorkspaceError(GhostLensError):
    """No workspace root could be resolved."""

    def __init__(self, workspace_root: Optional[str] = None):
        self.workspace_root = workspace_root
        if workspace_root:
            message = f"Workspace root '{workspace_root}' is not a directory."
        else:
            message = "No workspace root is available."
        super().__init__(message)


class LocaleFileNotFoundError(GhostLensError):
    """The locale file to load does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Locale file '{path}' not found.")


class LocaleParseError(GhostLensError):
    """The locale file could not be read or decoded into a key tree."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not parse locale file '{path}': {reason}")


class WatcherRebindError(GhostLensError):
    """Releasing a previous file subscription failed."""

    def __init__(self, path: Optional[str], reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to release watcher for '{path}': {reason}")
