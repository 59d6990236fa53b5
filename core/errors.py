"""Error types raised by the studylog core."""


class StudyLogError(Exception):
    """Base class for studylog errors."""


class TransientSyncFailure(StudyLogError):
    """Remote fetch or append failed at the network or status level."""


class MalformedRemoteData(StudyLogError):
    """Remote payload could not be read as rows."""


class GraderUnavailable(StudyLogError):
    """The grading service failed or returned unusable output."""


class PreconditionViolation(StudyLogError):
    """An operation was called in a state that does not allow it."""
