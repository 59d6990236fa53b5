"""Study service wiring the record store, remote catalog and test engine."""

import logging

from .catalog import RemoteCatalog, normalize_rows
from .config import DEFAULT_ENDPOINT_URL, ENDPOINT_URL_KEY, SUBMIT_POLICY
from .errors import PreconditionViolation, TransientSyncFailure
from .interfaces import Grader, RemoteStore, Storage
from .models import DailyRecord, SubmitOutcome, TestMode, TestSession
from .records import DailyRecordStore
from .session import TestSessionEngine

logger = logging.getLogger(__name__)

SUBMIT_POLICIES = ('optimistic', 'confirmed')
SYNC_FAILED_MESSAGE = "데이터 동기화 실패. URL을 확인하세요."
SUBMIT_FAILED_MESSAGE = "시트 전송에 실패했습니다."


class StudyService:
    """Process-lifetime state for one learner.

    Created once at startup and handed to whatever drives it. Holds the
    record store, the remote catalog snapshot and the test engine.
    """

    def __init__(self, storage: Storage, remote: RemoteStore, grader: Grader | None,
                 submit_policy: str = SUBMIT_POLICY, engine: TestSessionEngine = None):
        if submit_policy not in SUBMIT_POLICIES:
            raise ValueError(f"Unknown submit policy '{submit_policy}'")
        self.storage = storage
        self.remote = remote
        self.submit_policy = submit_policy
        self.records = DailyRecordStore(storage)
        self.catalog = RemoteCatalog()
        self.engine = engine or TestSessionEngine(grader)
        self.sync_error = None

    def load(self) -> None:
        self.records.load()
        self.remote.set_endpoint(self.endpoint_url)

    @property
    def endpoint_url(self) -> str:
        url = self.storage.load_value(ENDPOINT_URL_KEY)
        return url if isinstance(url, str) and url else DEFAULT_ENDPOINT_URL

    def set_endpoint_url(self, url: str) -> None:
        self.storage.save_value(ENDPOINT_URL_KEY, url.strip())
        self.remote.set_endpoint(self.endpoint_url)

    def refresh_catalog(self) -> bool:
        """Re-read the remote sheet. Returns True if the catalog was rebuilt."""
        if not self.endpoint_url.startswith('https://'):
            logger.info("Skipping catalog refresh: no https endpoint configured")
            return False
        try:
            rows = self.remote.fetch_all()
        except TransientSyncFailure as e:
            logger.warning(f"Catalog refresh failed: {e}")
            self.sync_error = SYNC_FAILED_MESSAGE
            self.catalog.mark_failed(str(e))
            return False

        self.sync_error = None
        if not rows:
            logger.info("Remote store returned no rows, keeping current catalog")
            return False
        self.catalog.replace(normalize_rows(rows))
        return True

    def submit(self, record: DailyRecord) -> tuple[DailyRecord, SubmitOutcome]:
        """Mark record completed and forward it to the remote store."""
        if record.is_completed:
            raise PreconditionViolation(f"Record for {record.date} is already submitted; reopen it first")
        if not record.filled_words():
            raise PreconditionViolation("Enter at least one word before submitting")
        completed = record.copy(is_completed=True)

        if self.submit_policy == 'confirmed':
            try:
                self.remote.append_record(completed)
            except TransientSyncFailure:
                self.sync_error = SUBMIT_FAILED_MESSAGE
                raise
            self.sync_error = None
            return (self.records.commit(completed), SubmitOutcome.CONFIRMED)

        committed = self.records.commit(completed)
        try:
            self.remote.append_record(completed)
        except TransientSyncFailure as e:
            logger.warning(f"Record {record.date} saved locally but not sent: {e}")
            self.sync_error = SUBMIT_FAILED_MESSAGE
            return (committed, SubmitOutcome.PENDING_CONFIRMATION)
        self.sync_error = None
        return (committed, SubmitOutcome.CONFIRMED)

    def reopen(self, record: DailyRecord) -> DailyRecord:
        """Allow edits again. The remote row already sent stays where it is."""
        return self.records.commit(record.copy(is_completed=False))

    def start_test(self, mode: TestMode, today_record: DailyRecord) -> TestSession:
        return self.engine.start(
            mode, today_record, self.catalog.words(), self.records.history_words()
        )

    def status(self) -> dict:
        return {
            'endpoint_url': self.endpoint_url,
            'catalog_count': len(self.catalog),
            'history_count': len(self.records.history()),
            'sync_error': self.sync_error,
            'submit_policy': self.submit_policy
        }
