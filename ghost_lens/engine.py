"""
The annotation engine.

One ``GhostLensEngine`` owns everything the pipeline keeps between events:
the locale table, the watcher subscription and the pending debounced update.
Hosts feed it events (focus change, edit, configuration change); file events
arrive through the watch backend. Each event runs to completion on the host's
event loop.
"""
import os
from typing import List, Optional, Protocol, Sequence

from ghost_lens.annotation_planner import Annotation, plan_annotations
from ghost_lens.app_config import AppConfig
from ghost_lens.errors import GhostLensError, NoWorkspaceError
from ghost_lens.key_extractor import KeyExtractor, RegexKeyExtractor
from ghost_lens.locale_resolver import matches_discovery_pattern, resolve_locale_file
from ghost_lens.locale_store import LocaleDataStore
from ghost_lens.locale_watcher import LocaleWatcher, WatchBackend
from ghost_lens.logging_config import get_logger
from ghost_lens.update_scheduler import Timer, UpdateScheduler

logger = get_logger('engine')


class HostSurface(Protocol):
    """What the engine needs from the editor it runs in."""

    def get_active_text(self) -> Optional[str]:
        """Full text of the focused buffer, or None without one."""

    def render(self, annotations: Sequence[Annotation]) -> None:
        """Replace every overlay of the focused buffer with ``annotations``."""

    def clear(self) -> None:
        """Remove all overlays."""


class GhostLensEngine:

    def __init__(
            self,
            config: AppConfig,
            host: HostSurface,
            watch_backend: WatchBackend,
            timer: Timer,
            extractor: Optional[KeyExtractor] = None
    ):
        self.config = config
        self.host = host
        self.store = LocaleDataStore()
        self.extractor = extractor or RegexKeyExtractor(config.function_names)
        self.scheduler = UpdateScheduler(self.recompute, timer, config.debounce_seconds)
        self.watcher = LocaleWatcher(
            watch_backend,
            on_modified=self._on_locale_modified,
            on_deleted=self._on_locale_deleted,
            on_created=self._on_locale_created
        )
        self.last_error: Optional[GhostLensError] = None
        self.annotations: List[Annotation] = []
        self._initialized = False
        self._disposed = False

    @property
    def workspace_root(self) -> Optional[str]:
        root = self.config.workspace_root
        if root and os.path.isdir(root):
            return root
        return None

    # --- Lifecycle ---

    def init(self) -> bool:
        """
        Load the locale file and render the focused buffer.

        Returns:
            bool: False when there is no workspace; the engine then stays inert.
        """
        if self._disposed:
            return False
        if self.workspace_root is None:
            self.last_error = NoWorkspaceError(self.config.workspace_root)
            logger.warning("%s Translation previews are disabled.", self.last_error)
            return False
        self._initialized = True
        self.reload()
        return True

    def reload(self) -> Optional[str]:
        """Resolve the locale file from scratch, load it and rebind the watcher."""
        if not self._initialized or self._disposed:
            return None
        root = self.workspace_root
        if root is None:
            self.last_error = NoWorkspaceError(self.config.workspace_root)
            logger.warning("%s", self.last_error)
            self.watcher.release()
            self.store.clear()
            self.scheduler.trigger()
            return None

        path = resolve_locale_file(
            root,
            manual_path=self.config.locale_path,
            locale_codes=self.config.locale_codes,
            extensions=self.config.extensions,
            exclude_dirs=self.config.exclude_dirs,
            max_candidates=self.config.max_candidates
        )
        if path:
            self.store.load(path)
            self.watcher.bind(path)
        else:
            self.store.clear()
            self.watcher.bind_discovery(root, self._is_locale_candidate)

        self.scheduler.trigger()
        return path

    def dispose(self) -> None:
        """Stop everything and remove the overlays."""
        if self._disposed:
            return
        self._disposed = True
        self.scheduler.dispose()
        self.watcher.release()
        self.annotations = []
        try:
            self.host.clear()
        except Exception:
            logger.exception("Failed to clear annotations")

    # --- Host events ---

    def on_active_editor_changed(self) -> None:
        self.scheduler.trigger()

    def on_text_changed(self) -> None:
        self.scheduler.trigger(debounce=True)

    def on_configuration_changed(self, config: AppConfig) -> None:
        self.config = config
        self.scheduler.delay = config.debounce_seconds
        if isinstance(self.extractor, RegexKeyExtractor) \
                and tuple(config.function_names) != self.extractor.function_names:
            self.extractor = RegexKeyExtractor(config.function_names)
        self.reload()

    # --- File events ---

    def _on_locale_modified(self, path: str) -> None:
        self.store.load(path)
        self.scheduler.trigger()

    def _on_locale_deleted(self, path: str) -> None:
        self.reload()

    def _on_locale_created(self, path: str) -> None:
        self.reload()

    def _is_locale_candidate(self, path: str) -> bool:
        root = self.workspace_root
        if root is None:
            return False
        relative = os.path.relpath(path, root)
        if relative.startswith(os.pardir):
            return False
        manual_path = self.config.locale_path
        if manual_path and os.path.normpath(relative) == os.path.normpath(manual_path):
            return True
        return matches_discovery_pattern(
            relative, self.config.locale_codes, self.config.extensions, self.config.exclude_dirs
        )

    # --- Recomputation ---

    def recompute(self) -> List[Annotation]:
        """Rescan the focused buffer and hand fresh annotations to the host."""
        if self._disposed or not self._initialized:
            return []
        text = self.host.get_active_text()
        if text is None:
            self.annotations = []
            return self.annotations
        table = self.store.snapshot()
        keys = self.extractor.extract(text)
        self.annotations = plan_annotations(keys, table, self.config.max_display_length)
        self.host.render(self.annotations)
        return self.annotations
