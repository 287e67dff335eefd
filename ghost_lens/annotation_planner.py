"""Turn extracted keys into the overlays shown after each call site."""
from dataclasses import dataclass
from typing import Iterable, List, Mapping

from ghost_lens.key_extractor import TranslationKey

DEFAULT_MAX_DISPLAY_LENGTH = 40
ELLIPSIS = '...'
LEADING_GLYPH = '➜'

# Render options understood by editor hosts: a muted, italic, non-editable
# overlay after the call that does not grow when text is typed next to it.
DECORATION_STYLE = {
    'after': {
        'margin': '0 0 0 10px',
        'color': '#8e96a3aa',
        'font_style': 'italic',
    },
    'range_behavior': 'closed_closed',
}


@dataclass(frozen=True)
class Annotation:
    """A resolved value anchored at a buffer offset."""
    offset: int
    key: str
    value: str

    @property
    def content_text(self) -> str:
        return f"  {LEADING_GLYPH}  {self.value}"


def truncate_value(value: str, max_length: int = DEFAULT_MAX_DISPLAY_LENGTH, ellipsis: str = ELLIPSIS) -> str:
    """
    Shorten a value for display.

    Values longer than ``max_length`` are cut so that the kept text plus the
    ellipsis is exactly ``max_length`` characters long.
    """
    if len(value) <= max_length:
        return value
    return value[:max(max_length - len(ellipsis), 0)] + ellipsis


def plan_annotations(
        keys: Iterable[TranslationKey],
        table: Mapping[str, str],
        max_length: int = DEFAULT_MAX_DISPLAY_LENGTH
) -> List[Annotation]:
    """
    Join extracted keys against a flattened table.

    Keys missing from the table, or mapped to an empty string, are skipped
    without error.
    """
    annotations = []
    for translation_key in keys:
        value = table.get(translation_key.key)
        if not value:
            continue
        annotations.append(Annotation(
            offset=translation_key.end_offset,
            key=translation_key.key,
            value=truncate_value(value, max_length)
        ))
    return annotations
