"""
Find translation lookups such as ``t('home.title')`` in buffer text.

Keys are ASCII word characters, dots and hyphens between matching quotes
(single, double or back-quote). Escaped or nested quotes inside a key are not
supported; such call sites are simply not matched.
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Pattern, Sequence


@dataclass(frozen=True)
class TranslationKey:
    """A key referenced in the buffer and where its call expression ends."""
    key: str
    end_offset: int
    start_offset: int = 0


class KeyExtractor(ABC):
    """Scans complete buffer text for translation keys."""

    @abstractmethod
    def extract(self, text: str) -> List[TranslationKey]:
        """Return every key in ``text`` in left-to-right order."""


def build_call_pattern(function_names: Sequence[str] = ('t',)) -> Pattern[str]:
    """Compile the call-site regex for the given lookup function names."""
    names = '|'.join(re.escape(name) for name in function_names)
    # The lookbehind keeps 'format(' from matching as 't(' while still
    # accepting 'i18n.t(' and '$t('.
    return re.compile(
        r"(?<!\w)(?:" + names + r")\((['\"`])([\w.\-]+)\1\)",
        re.ASCII
    )


class RegexKeyExtractor(KeyExtractor):
    """Fixed-pattern extractor for ``t(<quote><key><quote>)`` call sites."""

    def __init__(self, function_names: Sequence[str] = ('t',)):
        self.function_names = tuple(function_names)
        self.pattern = build_call_pattern(self.function_names)

    def extract(self, text: str) -> List[TranslationKey]:
        if not text:
            return []
        return [
            TranslationKey(key=match.group(2), end_offset=match.end(), start_offset=match.start())
            for match in self.pattern.finditer(text)
        ]
