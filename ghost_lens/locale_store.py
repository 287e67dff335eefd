"""
Locale data store: load a locale file and keep its flattened lookup table.

The table is never patched. Every load builds a brand new dict and swaps the
store's snapshot reference in one assignment under a lock, so a reader that
grabbed ``snapshot()`` keeps seeing one consistent table for as long as it
holds it.
"""
import json
import os
import threading
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import yaml

from ghost_lens.errors import GhostLensError, LocaleFileNotFoundError, LocaleParseError
from ghost_lens.logging_config import get_logger

logger = get_logger('store')

KEY_SEPARATOR = '.'
YAML_EXTENSIONS = ('.yaml', '.yml')

_EMPTY_TABLE: Mapping[str, str] = MappingProxyType({})


def stringify_leaf(value: Any) -> str:
    """Render a leaf the way it is written in the locale file."""
    if isinstance(value, str):
        return value
    # bool before int: True is an int too.
    if isinstance(value, bool) or value is None or isinstance(value, (list, tuple)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def flatten_tree(tree: Mapping[Any, Any], prefix: str = '') -> Dict[str, str]:
    """
    Flatten a nested key tree into a single-level table of dotted paths.

    Args:
        tree: The parsed locale tree. Branches are mappings, everything else
            is a leaf.
        prefix: Dotted path of ``tree`` inside the full document.

    Returns:
        Dict[str, str]: One entry per leaf, keyed by its full dotted path.
    """
    flat: Dict[str, str] = {}
    for key, value in tree.items():
        full_key = f"{prefix}{KEY_SEPARATOR}{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_tree(value, full_key))
        else:
            flat[full_key] = stringify_leaf(value)
    return flat


def parse_locale_file(path: str) -> Dict[str, Any]:
    """
    Read and decode a locale file into its raw nested tree.

    JSON is the default; ``.yaml``/``.yml`` files go through ``yaml.safe_load``.

    Raises:
        LocaleFileNotFoundError: The file does not exist.
        LocaleParseError: The file cannot be read or does not hold a mapping.
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except FileNotFoundError:
        raise LocaleFileNotFoundError(path)
    except (OSError, UnicodeDecodeError) as e:
        raise LocaleParseError(path, str(e))

    if not content.strip():
        return {}

    try:
        if path.lower().endswith(YAML_EXTENSIONS):
            tree = yaml.safe_load(content)
        else:
            tree = json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LocaleParseError(path, str(e))

    if tree is None:
        return {}
    if not isinstance(tree, dict):
        raise LocaleParseError(path, f"expected an object at the top level, got {type(tree).__name__}")
    return tree


class LocaleDataStore:
    """Holds the flattened table of the active locale file."""

    def __init__(self):
        self._lock = threading.Lock()
        self._table: Mapping[str, str] = _EMPTY_TABLE
        self.path: Optional[str] = None
        self.last_error: Optional[GhostLensError] = None

    def load(self, path: str) -> bool:
        """
        Load ``path`` and replace the whole table with its flattened content.

        On any read or parse failure the table becomes empty and the error is
        kept in ``last_error``; nothing is raised.

        Returns:
            bool: True if the file was loaded.
        """
        try:
            table = flatten_tree(parse_locale_file(path))
        except GhostLensError as e:
            logger.warning("%s Showing no translations.", e)
            self._swap(_EMPTY_TABLE, path, e)
            return False
        except RecursionError:
            error = LocaleParseError(path, "key tree is nested too deeply")
            logger.warning("%s Showing no translations.", error)
            self._swap(_EMPTY_TABLE, path, error)
            return False

        self._swap(MappingProxyType(table), path, None)
        logger.info("Loaded %d translation(s) from %s", len(table), os.path.basename(path))
        return True

    def clear(self) -> None:
        """Drop to the empty table; used when no locale file is available."""
        self._swap(_EMPTY_TABLE, None, None)

    def _swap(self, table: Mapping[str, str], path: Optional[str], error: Optional[GhostLensError]) -> None:
        with self._lock:
            self._table = table
            self.path = path
            self.last_error = error

    def snapshot(self) -> Mapping[str, str]:
        """Return the current read-only table."""
        with self._lock:
            return self._table

    def get(self, key: str) -> Optional[str]:
        """Return the value for an exact dotted key, or None."""
        return self.snapshot().get(key)

    def __len__(self) -> int:
        return len(self.snapshot())

    def __contains__(self, key: object) -> bool:
        return key in self.snapshot()
