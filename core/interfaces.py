"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod


class Grader(ABC):
    """Abstract base class for the answer grading service."""

    @abstractmethod
    def grade(self, target_word: str, target_meaning: str,
              user_spelling: str, user_meaning: str) -> dict:
        """Grade one answer. Returns {'isCorrect': bool, 'feedback': str}.
        Raises on any failure; callers fall back to the local judge."""
        pass


class RemoteStore(ABC):
    """Abstract base class for the spreadsheet-backed remote store."""

    endpoint_url = ''

    def set_endpoint(self, url: str) -> None:
        """Point both operations at a new endpoint URL."""
        self.endpoint_url = url

    @abstractmethod
    def fetch_all(self) -> list:
        """Read every row, header first. Raises TransientSyncFailure on
        network or status errors; a malformed body yields []."""
        pass

    @abstractmethod
    def append_record(self, record) -> None:
        """Append one DailyRecord. Raises TransientSyncFailure only when the
        request could not be sent."""
        pass


class Storage(ABC):
    """Abstract base class for local key/value persistence."""

    @abstractmethod
    def load_config(self) -> dict:
        """Load configuration. Returns config dict."""
        pass

    @abstractmethod
    def load_value(self, key: str):
        """Load a stored value. Returns None if missing or unreadable."""
        pass

    @abstractmethod
    def save_value(self, key: str, value) -> None:
        """Store a JSON-serializable value under key."""
        pass
