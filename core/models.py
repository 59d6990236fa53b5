"""Domain models for studylog application."""

import uuid
from enum import Enum

from .config import WORD_SLOT_COUNT
from .utils import clean_text


class TestMode(str, Enum):
    TODAY = 'today'
    CUMULATIVE = 'cumulative'


class SessionState(str, Enum):
    NOT_STARTED = 'not_started'
    IN_PROGRESS = 'in_progress'
    FINISHED = 'finished'


class SubmitOutcome(str, Enum):
    """Result of forwarding a record to the remote store."""
    PENDING_CONFIRMATION = 'pending_confirmation'
    CONFIRMED = 'confirmed'


class WordEntry:
    """A word and its meaning. An entry with an empty word is a placeholder slot."""

    def __init__(self, word: str = '', meaning: str = ''):
        self.word = word
        self.meaning = meaning

    def key(self) -> str:
        """Identity used for deduplication."""
        return self.word.strip().lower()

    def is_placeholder(self) -> bool:
        return not self.word.strip()

    def is_filled(self) -> bool:
        return bool(self.word.strip()) and bool(self.meaning.strip())

    def to_dict(self) -> dict:
        return {'word': self.word, 'meaning': self.meaning}

    @classmethod
    def from_dict(cls, data) -> 'WordEntry':
        if not isinstance(data, dict):
            return cls()
        word = data.get('word')
        meaning = data.get('meaning')
        return cls(
            word if isinstance(word, str) else clean_text(word),
            meaning if isinstance(meaning, str) else clean_text(meaning)
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, WordEntry):
            return NotImplemented
        return self.word == other.word and self.meaning == other.meaning

    def __hash__(self) -> int:
        return hash((self.word, self.meaning))

    def __repr__(self) -> str:
        return f'WordEntry({self.word!r}, {self.meaning!r})'


def pad_words(words: list, size: int = WORD_SLOT_COUNT) -> list:
    """Pad or truncate a word list to exactly `size` slots."""
    padded = list(words[:size])
    while len(padded) < size:
        padded.append(WordEntry())
    return padded


class DailyRecord:
    """One calendar day's study entry."""

    def __init__(self, date: str, page: str = '', words: list = None,
                 news_content: str = '', is_completed: bool = False):
        self.date = date
        self.page = page
        self.words = words if words is not None else pad_words([])
        self.news_content = news_content
        self.is_completed = is_completed

    @classmethod
    def empty(cls, date: str) -> 'DailyRecord':
        """Fresh draft for a date with no stored record."""
        return cls(date)

    def copy(self, **changes) -> 'DailyRecord':
        """Return a copy with the given attributes replaced."""
        record = DailyRecord(
            self.date, self.page,
            [WordEntry(w.word, w.meaning) for w in self.words],
            self.news_content, self.is_completed
        )
        for name, value in changes.items():
            if not hasattr(record, name):
                raise AttributeError(f"DailyRecord has no field '{name}'")
            setattr(record, name, value)
        return record

    def padded(self) -> 'DailyRecord':
        """Copy with exactly WORD_SLOT_COUNT word slots."""
        record = self.copy()
        record.words = pad_words(record.words)
        return record

    def filled_words(self) -> list:
        """Entries with a non-empty word, as sent to the remote store."""
        return [w for w in self.words if not w.is_placeholder()]

    def quiz_words(self) -> list:
        """Entries with both word and meaning filled in."""
        return [w for w in self.words if w.is_filled()]

    def to_dict(self) -> dict:
        return {
            'date': self.date,
            'page': self.page,
            'words': [w.to_dict() for w in self.words],
            'newsContent': self.news_content,
            'isCompleted': self.is_completed
        }

    @classmethod
    def from_dict(cls, data: dict, pad: bool = True) -> 'DailyRecord':
        """Build a record from its stored form.

        With pad=True the words are padded or truncated to the slot count;
        pad=False keeps them as stored.
        """
        words = data.get('words') or []
        if not isinstance(words, list):
            words = []
        words = [WordEntry.from_dict(w) for w in words]
        return cls(
            str(data['date']),
            str(data.get('page') or ''),
            pad_words(words) if pad else words,
            str(data.get('newsContent') or ''),
            bool(data.get('isCompleted', False))
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, DailyRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f'DailyRecord({self.date!r}, completed={self.is_completed})'


class TestResult:
    """Outcome of one answered question."""

    def __init__(self, word: str, meaning: str, user_spelling: str, user_meaning: str,
                 is_correct: bool, feedback: str):
        self.word = word
        self.meaning = meaning
        self.user_spelling = user_spelling
        self.user_meaning = user_meaning
        self.is_correct = is_correct
        self.feedback = feedback

    def to_dict(self) -> dict:
        return {
            'word': self.word,
            'meaning': self.meaning,
            'userSpelling': self.user_spelling,
            'userMeaning': self.user_meaning,
            'isCorrect': self.is_correct,
            'feedback': self.feedback
        }


class TestSession:
    """A quiz run. Lives only while the quiz is open."""

    def __init__(self, mode: TestMode, questions: list):
        self.id = str(uuid.uuid4())[:8]
        self.mode = mode
        self.questions = tuple(questions)
        self.current_index = 0
        self.results = []
        self.state = SessionState.NOT_STARTED
        self.grading = False
        self.closed = False

    @property
    def is_finished(self) -> bool:
        return self.state == SessionState.FINISHED

    def current_question(self) -> WordEntry | None:
        if self.state != SessionState.IN_PROGRESS:
            return None
        return self.questions[self.current_index]

    def score(self) -> tuple[int, int]:
        """(correct answers, number of questions)."""
        correct = sum(1 for r in self.results if r.is_correct)
        return (correct, len(self.questions))

    def to_dict(self) -> dict:
        correct, total = self.score()
        current = self.current_question()
        return {
            'id': self.id,
            'mode': self.mode.value,
            'state': self.state.value,
            'current_index': self.current_index,
            'total': total,
            'current_word': current.word if current else None,
            'grading': self.grading,
            'results': [r.to_dict() for r in self.results],
            'correct': correct
        }
