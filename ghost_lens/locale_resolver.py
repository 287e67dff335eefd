"""
Locate the locale file whose values are previewed.

A configured override path always wins when it exists. Otherwise the
workspace is searched for files named after a common locale code
(``en.json``, ``de-DE.json``, ``fr_common.json`` ...), skipping build and
dependency directories, and the first hit is used.
"""
import fnmatch
import os
from typing import Iterator, List, Optional, Sequence

from ghost_lens.logging_config import get_logger

logger = get_logger('resolver')

DEFAULT_LOCALE_CODES = ('en', 'es', 'fr', 'de', 'it', 'pt', 'ja', 'zh', 'ru')
DEFAULT_EXTENSIONS = ('json',)
DEFAULT_EXCLUDE_DIRS = ('node_modules', '.git', '.next', 'build', 'dist', 'out')
DEFAULT_MAX_CANDIDATES = 5


def discovery_patterns(locale_codes: Sequence[str], extensions: Sequence[str]) -> List[str]:
    """Expand locale codes and extensions into basename glob patterns."""
    return [
        f"{code}*.{ext.lstrip('.')}"
        for code in locale_codes
        for ext in extensions
    ]


def matches_discovery_pattern(
        path: str,
        locale_codes: Sequence[str] = DEFAULT_LOCALE_CODES,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS
) -> bool:
    """
    Check whether a path would be picked up by discovery.

    Args:
        path: A file path, absolute or relative to the workspace.
        locale_codes: Locale code prefixes accepted for the basename.
        extensions: Accepted file extensions, without the dot.
        exclude_dirs: Directory names that disqualify the path at any depth.

    Returns:
        True if the basename matches and no parent directory is excluded.
    """
    directory, basename = os.path.split(os.path.normpath(path))
    if any(part in exclude_dirs for part in directory.split(os.sep)):
        return False
    return any(
        fnmatch.fnmatchcase(basename, pattern)
        for pattern in discovery_patterns(locale_codes, extensions)
    )


def find_locale_candidates(
        workspace_root: str,
        locale_codes: Sequence[str] = DEFAULT_LOCALE_CODES,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS,
        max_candidates: int = DEFAULT_MAX_CANDIDATES
) -> Iterator[str]:
    """
    Walk the workspace and yield at most ``max_candidates`` locale files.

    The walk is top-down with sorted directory and file names, so a shallow
    file is found before a nested one and the order is stable between runs.
    """
    if max_candidates <= 0:
        return
    patterns = discovery_patterns(locale_codes, extensions)
    found = 0
    for dirpath, dirnames, filenames in os.walk(workspace_root):
        # Prune in place so os.walk never descends into excluded trees.
        dirnames[:] = sorted(d for d in dirnames if d not in exclude_dirs)
        for filename in sorted(filenames):
            if any(fnmatch.fnmatchcase(filename, pattern) for pattern in patterns):
                yield os.path.join(dirpath, filename)
                found += 1
                if found >= max_candidates:
                    return


def resolve_locale_file(
        workspace_root: Optional[str],
        manual_path: Optional[str] = None,
        locale_codes: Sequence[str] = DEFAULT_LOCALE_CODES,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS,
        max_candidates: int = DEFAULT_MAX_CANDIDATES
) -> Optional[str]:
    """
    Decide which locale file to load.

    Args:
        workspace_root: Absolute path of the workspace.
        manual_path: Optional workspace-relative override.
        locale_codes: Locale codes used by discovery.
        extensions: File extensions used by discovery.
        exclude_dirs: Directory names skipped by discovery.
        max_candidates: Upper bound on files examined by discovery.

    Returns:
        Optional[str]: The absolute path of the locale file, or None when no
        translations are available. Never raises.
    """
    if not workspace_root or not os.path.isdir(workspace_root):
        logger.debug("No usable workspace root (%s); nothing to resolve.", workspace_root)
        return None

    if manual_path:
        candidate = os.path.join(workspace_root, manual_path)
        if os.path.isfile(candidate):
            logger.debug("Using configured locale file: %s", candidate)
            return os.path.abspath(candidate)
        logger.info("Configured locale file '%s' does not exist, falling back to discovery.", candidate)

    candidates = list(find_locale_candidates(
        workspace_root, locale_codes, extensions, exclude_dirs, max_candidates
    ))
    if not candidates:
        logger.info("No locale file found under '%s'.", workspace_root)
        return None

    logger.debug("Discovered locale candidates: %s", candidates)
    return os.path.abspath(candidates[0])
