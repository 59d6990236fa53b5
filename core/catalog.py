"""Normalization of remote sheet rows into a deduplicated word catalog."""

import logging
from datetime import datetime

from .models import WordEntry
from .utils import clean_text

logger = logging.getLogger(__name__)

# Column positions in the sheet: date, page, word, meaning, ...
WORD_COLUMN = 2
MEANING_COLUMN = 3

# Field names tried in order for object-shaped rows
WORD_FIELDS = ('영어단어', 'word')
MEANING_FIELDS = ('의미', 'meaning')


def extract_rows(payload) -> list:
    """Pull the row list out of a decoded response body.

    Accepts a bare list of rows or ``{"data": [...]}``. Anything else is
    treated as no data.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get('data'), list):
        return payload['data']
    return []


def _first_field(row: dict, names: tuple) -> str:
    for name in names:
        value = clean_text(row.get(name))
        if value:
            return value
    return ''


def parse_row(row) -> WordEntry | None:
    """Parse one row into a WordEntry, or None if the row is rejected."""
    if isinstance(row, (list, tuple)):
        word = clean_text(row[WORD_COLUMN]) if len(row) > WORD_COLUMN else ''
        meaning = clean_text(row[MEANING_COLUMN]) if len(row) > MEANING_COLUMN else ''
    elif isinstance(row, dict):
        word = _first_field(row, WORD_FIELDS)
        meaning = _first_field(row, MEANING_FIELDS)
    else:
        return None

    if not word or not meaning:
        return None
    return WordEntry(word, meaning)


def normalize_rows(rows: list) -> list:
    """Turn raw rows into unique words. The first row is a header.

    When two rows share a word (case-insensitive) the later row wins, keeping
    the position of the first one.
    """
    unique = {}
    for row in rows[1:]:
        entry = parse_row(row)
        if entry is not None:
            unique[entry.key()] = entry
    return list(unique.values())


def normalize_payload(payload) -> list:
    return normalize_rows(extract_rows(payload))


class RemoteCatalog:
    """Snapshot of the words stored remotely, replaced on every successful sync."""

    def __init__(self):
        self._words = []
        self.synced_at = None
        self.last_error = None

    def replace(self, words: list) -> None:
        self._words = list(words)
        self.synced_at = datetime.now()
        self.last_error = None
        logger.info(f"Remote catalog rebuilt with {len(self._words)} words")

    def mark_failed(self, message: str) -> None:
        """Record a failed sync. The previous snapshot stays in place."""
        self.last_error = message

    def words(self) -> list:
        return list(self._words)

    def __len__(self) -> int:
        return len(self._words)

    def to_dict(self) -> dict:
        return {
            'words': [w.to_dict() for w in self._words],
            'count': len(self._words),
            'synced_at': self.synced_at.isoformat() if self.synced_at else None,
            'error': self.last_error
        }
