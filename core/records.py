"""Local store of daily records."""

import logging

from .config import HISTORY_KEY, WORD_SLOT_COUNT
from .errors import PreconditionViolation
from .interfaces import Storage
from .models import DailyRecord, WordEntry

logger = logging.getLogger(__name__)

EDITABLE_WORD_FIELDS = ('word', 'meaning')


class DailyRecordStore:
    """Owns every DailyRecord and is the only writer of the history entry."""

    def __init__(self, storage: Storage):
        self.storage = storage
        self._records = {}  # date -> DailyRecord

    def load(self) -> None:
        """Read history from storage, replacing anything held in memory."""
        self._records = {}
        raw = self.storage.load_value(HISTORY_KEY)
        if raw is None:
            return
        if not isinstance(raw, list):
            logger.warning(f"Ignoring stored history of type {type(raw).__name__}")
            return
        for item in raw:
            try:
                record = DailyRecord.from_dict(item, pad=False)
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping unreadable history entry: {e}")
                continue
            self._records[record.date] = record
        logger.info(f"Loaded {len(self._records)} daily records")

    def history(self) -> list:
        """All records, ordered by date, each padded to the slot count."""
        return [self._records[d].padded() for d in sorted(self._records)]

    def load_for_date(self, date: str) -> DailyRecord:
        """Stored record for date, or an empty draft. Never writes."""
        existing = self._records.get(date)
        if existing is None:
            return DailyRecord.empty(date)
        return existing.padded()

    def set_field(self, record: DailyRecord, index: int, field: str, value: str) -> DailyRecord:
        """Return a copy of record with one word slot's word or meaning replaced."""
        if not 0 <= index < WORD_SLOT_COUNT:
            raise IndexError(f"Word slot {index} out of range [0, {WORD_SLOT_COUNT})")
        if field not in EDITABLE_WORD_FIELDS:
            raise ValueError(f"Unknown word field '{field}'")
        self._require_draft(record)
        updated = record.copy()
        slot = updated.words[index]
        if field == 'word':
            updated.words[index] = WordEntry(value, slot.meaning)
        else:
            updated.words[index] = WordEntry(slot.word, value)
        return updated

    def update_details(self, record: DailyRecord, page: str = None,
                       news_content: str = None) -> DailyRecord:
        """Return a copy of record with page range and/or news note replaced."""
        self._require_draft(record)
        changes = {}
        if page is not None:
            changes['page'] = page
        if news_content is not None:
            changes['news_content'] = news_content
        return record.copy(**changes)

    def commit(self, record: DailyRecord) -> DailyRecord:
        """Upsert record by date and persist the whole history."""
        committed = record.copy()
        self._records[committed.date] = committed
        self._persist()
        return committed.padded()

    def completed_dates(self, year: int, month: int) -> list:
        """Dates in the given month that have a completed record."""
        prefix = f"{year:04d}-{month:02d}-"
        return sorted(
            d for d, r in self._records.items()
            if d.startswith(prefix) and r.is_completed
        )

    def history_words(self) -> list:
        """Fully filled words across all records, oldest first."""
        words = []
        for record in self.history():
            words.extend(record.quiz_words())
        return words

    def _require_draft(self, record: DailyRecord) -> None:
        if record.is_completed:
            raise PreconditionViolation(f"Record for {record.date} is completed; reopen it to edit")

    def _persist(self) -> None:
        self.storage.save_value(
            HISTORY_KEY, [self._records[d].to_dict() for d in sorted(self._records)]
        )
