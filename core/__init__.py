from .models import (
    WordEntry, DailyRecord, TestResult, TestSession,
    TestMode, SessionState, SubmitOutcome
)
from .interfaces import Grader, RemoteStore, Storage
from .errors import (
    StudyLogError, TransientSyncFailure, MalformedRemoteData,
    GraderUnavailable, PreconditionViolation
)
from .catalog import RemoteCatalog, normalize_rows, normalize_payload
from .records import DailyRecordStore
from .session import TestSessionEngine
from .judge import judge
from .service import StudyService
from .config import WORD_SLOT_COUNT, CUMULATIVE_QUESTION_COUNT

__all__ = [
    'WordEntry', 'DailyRecord', 'TestResult', 'TestSession',
    'TestMode', 'SessionState', 'SubmitOutcome',
    'Grader', 'RemoteStore', 'Storage',
    'StudyLogError', 'TransientSyncFailure', 'MalformedRemoteData',
    'GraderUnavailable', 'PreconditionViolation',
    'RemoteCatalog', 'normalize_rows', 'normalize_payload',
    'DailyRecordStore', 'TestSessionEngine', 'judge', 'StudyService',
    'WORD_SLOT_COUNT', 'CUMULATIVE_QUESTION_COUNT'
]
