"""
Preview translation annotations in a terminal.

Prints each source file with the resolved value of every ``t('...')`` lookup
appended after the call, the way an editor overlay would show it. With
``--watch`` the engine keeps running and reprints whenever a source file or
the locale file changes.

Usage:
  python -m ghost_lens.preview [--workspace DIR] [--locale PATH] [--watch] FILE...
"""
import argparse
import asyncio
import os
import sys
from typing import List, Optional, Sequence, Tuple

from tqdm import tqdm

from ghost_lens.annotation_planner import Annotation
from ghost_lens.app_config import load_app_config
from ghost_lens.engine import GhostLensEngine
from ghost_lens.locale_watcher import FileChange, NullWatchBackend, WatchfilesBackend
from ghost_lens.logging_config import get_logger
from ghost_lens.update_scheduler import AsyncioTimer

logger = get_logger('preview')

# Dim + italic, the closest a terminal gets to a muted overlay.
OVERLAY_STYLE = '\x1b[2;3m'
RESET_STYLE = '\x1b[0m'


def offset_to_position(text: str, offset: int) -> Tuple[int, int]:
    """Convert a buffer offset into a zero-based (line, column) pair."""
    offset = max(0, min(offset, len(text)))
    line = text.count('\n', 0, offset)
    line_start = text.rfind('\n', 0, offset) + 1
    return line, offset - line_start


def render_annotated_text(text: str, annotations: Sequence[Annotation], color: bool = False) -> str:
    """Insert each annotation's content right after its call site."""
    pieces = []
    cursor = 0
    for annotation in sorted(annotations, key=lambda a: a.offset):
        pieces.append(text[cursor:annotation.offset])
        overlay = annotation.content_text
        if color:
            overlay = f"{OVERLAY_STYLE}{overlay}{RESET_STYLE}"
        pieces.append(overlay)
        cursor = annotation.offset
    pieces.append(text[cursor:])
    return ''.join(pieces)


class TerminalHost:
    """Host surface whose "active buffer" is a file on disk."""

    def __init__(self, stream=None, color: bool = False):
        self.stream = stream if stream is not None else sys.stdout
        self.color = color
        self.active_path: Optional[str] = None
        self.rendered: List[Annotation] = []

    def open(self, path: str) -> None:
        self.active_path = path

    def get_active_text(self) -> Optional[str]:
        if self.active_path is None:
            return None
        try:
            with open(self.active_path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", self.active_path, e)
            return None

    def render(self, annotations: Sequence[Annotation]) -> None:
        self.rendered = list(annotations)
        text = self.get_active_text()
        if text is None:
            return
        header = f"==> {self.active_path} ({len(self.rendered)} annotation(s)) <=="
        tqdm.write(header, file=self.stream)
        tqdm.write(render_annotated_text(text, self.rendered, self.color).rstrip('\n'), file=self.stream)

    def clear(self) -> None:
        self.rendered = []


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ghost-lens',
        description='Show resolved translation values next to t(...) lookups.'
    )
    parser.add_argument('files', nargs='+', help='Source files to annotate.')
    parser.add_argument('--workspace', help='Workspace root (defaults to GHOST_LENS_WORKSPACE or the CWD).')
    parser.add_argument('--locale', help='Workspace-relative locale file, overriding discovery.')
    parser.add_argument('--watch', action='store_true', help='Keep running and reprint on changes.')
    parser.add_argument('--no-color', action='store_true', help='Do not style the annotations.')
    return parser


def _load_config(args: argparse.Namespace):
    config = load_app_config(args.workspace)
    if args.locale:
        config.locale_path = args.locale
    return config


def preview_files(args: argparse.Namespace) -> int:
    """Annotate every file once and exit."""
    config = _load_config(args)
    host = TerminalHost(color=sys.stdout.isatty() and not args.no_color)
    engine = GhostLensEngine(config, host, NullWatchBackend(), AsyncioTimer())
    if not engine.init():
        return 1
    if engine.store.path is None:
        logger.warning("No locale file found; nothing to preview.")

    total = 0
    for path in tqdm(args.files, desc='Annotating', unit='file', disable=len(args.files) < 2, file=sys.stderr):
        host.open(os.path.abspath(path))
        engine.on_active_editor_changed()
        total += len(engine.annotations)

    engine.dispose()
    logger.info("Rendered %d annotation(s) in %d file(s).", total, len(args.files))
    return 0


async def watch_files(args: argparse.Namespace) -> int:
    """Annotate the files and keep following them until interrupted."""
    config = _load_config(args)
    host = TerminalHost(color=sys.stdout.isatty() and not args.no_color)
    backend = WatchfilesBackend()
    engine = GhostLensEngine(config, host, backend, AsyncioTimer())

    paths = [os.path.abspath(path) for path in args.files]
    if not engine.init():
        return 1
    for path in paths:
        host.open(path)
        engine.on_active_editor_changed()

    def on_source_event(change: FileChange, changed_path: str) -> None:
        if change is FileChange.DELETED:
            return
        if host.active_path != changed_path:
            host.open(changed_path)
            engine.on_active_editor_changed()
        else:
            engine.on_text_changed()

    subscriptions = [backend.watch(path, on_source_event) for path in paths]
    logger.info("Watching %d file(s); press Ctrl+C to stop.", len(paths))
    try:
        await asyncio.Event().wait()
    finally:
        for subscription in subscriptions:
            subscription.close()
        engine.dispose()
    return 0


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.watch:
        return preview_files(args)
    try:
        return asyncio.run(watch_files(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(run())
