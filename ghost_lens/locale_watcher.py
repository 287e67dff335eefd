"""
Follow the active locale file on disk.

``LocaleWatcher`` owns at most one subscription. It is bound either to the
resolved locale file (modify and delete events) or, when nothing resolved,
to the workspace so that a newly created locale file is noticed.
The filesystem itself is reached through a ``WatchBackend``; the real one is
built on ``watchfiles``.
"""
import asyncio
import os
from enum import Enum
from typing import Callable, Optional, Protocol

from watchfiles import Change, awatch

from ghost_lens.errors import WatcherRebindError
from ghost_lens.logging_config import get_logger

logger = get_logger('watcher')


class FileChange(Enum):
    ADDED = 'added'
    MODIFIED = 'modified'
    DELETED = 'deleted'


_CHANGE_MAP = {
    Change.added: FileChange.ADDED,
    Change.modified: FileChange.MODIFIED,
    Change.deleted: FileChange.DELETED,
}

FileEventCallback = Callable[[FileChange, str], None]


class Subscription(Protocol):
    def close(self) -> None: ...


class WatchBackend(Protocol):
    """Delivers change events for a file or a directory tree."""

    def watch(self, path: str, on_event: FileEventCallback) -> Subscription: ...


def _same_path(a: str, b: str) -> bool:
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))


class WatchfilesSubscription:
    """An ``awatch`` loop running as a task on the current event loop."""

    def __init__(self, path: str, on_event: FileEventCallback):
        self.path = os.path.abspath(path)
        self.on_event = on_event
        self._is_file = os.path.isfile(self.path)
        # A file is watched through its directory so deletion and re-creation
        # are both seen.
        self._watch_root = os.path.dirname(self.path) if self._is_file else self.path
        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        try:
            async for changes in awatch(
                    self._watch_root,
                    stop_event=self._stop_event,
                    recursive=not self._is_file
            ):
                for change, changed_path in sorted(changes, key=lambda c: c[1]):
                    if self._is_file and not _same_path(changed_path, self.path):
                        continue
                    self.on_event(_CHANGE_MAP[change], changed_path)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("File watcher for %s stopped", self.path)

    def close(self) -> None:
        self._stop_event.set()
        self._task.cancel()


class WatchfilesBackend:
    """Watch backend using ``watchfiles.awatch``; must run inside an event loop."""

    def watch(self, path: str, on_event: FileEventCallback) -> WatchfilesSubscription:
        return WatchfilesSubscription(path, on_event)


class NullSubscription:
    def close(self) -> None:
        pass


class NullWatchBackend:
    """Backend for one-shot runs where nothing needs to be followed."""

    def watch(self, path: str, on_event: FileEventCallback) -> NullSubscription:
        return NullSubscription()


class LocaleWatcher:
    """Keeps exactly one live subscription for the engine."""

    def __init__(
            self,
            backend: WatchBackend,
            on_modified: Callable[[str], None],
            on_deleted: Callable[[str], None],
            on_created: Optional[Callable[[str], None]] = None
    ):
        self.backend = backend
        self.on_modified = on_modified
        self.on_deleted = on_deleted
        self.on_created = on_created
        self.bound_path: Optional[str] = None
        self.discovery_root: Optional[str] = None
        self.last_error: Optional[WatcherRebindError] = None
        self._subscription: Optional[Subscription] = None
        self._generation = 0

    @property
    def active(self) -> bool:
        return self._subscription is not None

    def bind(self, path: str) -> None:
        """Follow modifications and deletion of ``path``."""
        generation = self._rebind()

        def handle(change: FileChange, changed_path: str) -> None:
            if generation != self._generation:
                return
            if change is FileChange.DELETED:
                logger.info("Locale file deleted: %s", changed_path)
                self.on_deleted(path)
            else:
                logger.debug("Locale file changed: %s", changed_path)
                self.on_modified(path)

        self._subscription = self.backend.watch(path, handle)
        self.bound_path = path

    def bind_discovery(self, workspace_root: str, matcher: Callable[[str], bool]) -> None:
        """Wait for a file that ``matcher`` accepts to appear under the workspace."""
        generation = self._rebind()

        def handle(change: FileChange, changed_path: str) -> None:
            if generation != self._generation or change is FileChange.DELETED:
                return
            if self.on_created is not None and matcher(changed_path):
                logger.info("Locale file appeared: %s", changed_path)
                self.on_created(changed_path)

        self._subscription = self.backend.watch(workspace_root, handle)
        self.discovery_root = workspace_root

    def release(self) -> None:
        """Drop the current subscription. Failures are recorded, never raised."""
        subscription, self._subscription = self._subscription, None
        path = self.bound_path or self.discovery_root
        self.bound_path = None
        self.discovery_root = None
        self._generation += 1
        if subscription is None:
            return
        try:
            subscription.close()
        except Exception as e:
            self.last_error = WatcherRebindError(path, str(e))
            logger.warning("%s", self.last_error)

    def _rebind(self) -> int:
        self.release()
        return self._generation
