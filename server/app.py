"""FastAPI server for studylog application."""

import asyncio
import logging
import os

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

from core.config import MAX_OPEN_SESSIONS, SYNC_REFRESH_DELAY_SECONDS
from core.errors import PreconditionViolation, TransientSyncFailure
from core.models import DailyRecord, SubmitOutcome, TestMode, TestSession
from core.service import StudyService
from core.utils import today_string

from server.gemini_grader import GeminiGrader
from server.sheet_gateway import SheetGateway
from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class SettingsRequest(BaseModel):
    endpoint_url: str


class WordFieldRequest(BaseModel):
    field: str  # 'word' or 'meaning'
    value: str


class DetailsRequest(BaseModel):
    page: Optional[str] = None
    news_content: Optional[str] = None


class StartTestRequest(BaseModel):
    mode: TestMode
    date: Optional[str] = None  # Defaults to today


class AnswerRequest(BaseModel):
    spelling: str
    meaning: str


class SubmitResponse(BaseModel):
    record: dict
    outcome: str
    sync_error: Optional[str]


class SyncResponse(BaseModel):
    refreshed: bool
    word_count: int
    sync_error: Optional[str]


# Global state (in production, use proper DI)
service: StudyService = None
drafts: dict[str, DailyRecord] = {}     # date -> record being edited
sessions: dict[str, TestSession] = {}   # session id -> open test


app = FastAPI(title="Studylog API", description="Daily vocabulary record and test API")


def get_draft(date: str) -> DailyRecord:
    """Unsaved edits for a date if any, else the stored record or a fresh draft.

    Only edited dates are kept in `drafts`; committing clears the entry.
    """
    if date in drafts:
        return drafts[date]
    return service.records.load_for_date(date)


def register_session(session: TestSession) -> None:
    """Track an open test, dropping the oldest beyond MAX_OPEN_SESSIONS."""
    sessions[session.id] = session
    while len(sessions) > MAX_OPEN_SESSIONS:
        oldest = next(iter(sessions))
        service.engine.close(sessions.pop(oldest))
        logger.info(f"Dropped stale test {oldest}")


def get_session(session_id: str) -> TestSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Test not found")
    return session


async def refresh_catalog_later(delay: float = SYNC_REFRESH_DELAY_SECONDS) -> None:
    """Re-read the sheet after the insert has had time to land."""
    await asyncio.sleep(delay)
    loop = asyncio.get_event_loop()
    await loop.run_in_executor(None, service.refresh_catalog)


@app.on_event("startup")
async def startup():
    """Initialize storage, gateway and grader on startup."""
    global service

    # Set STUDYLOG_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('STUDYLOG_STORAGE', 'file')
    if storage_type == 'postgres':
        storage = PostgresStorage()
        logger.info("Using PostgreSQL storage")
    else:
        storage = FileStorage()
        logger.info("Using file storage")

    # Get API key from environment variable first, then fall back to config file
    api_key = os.environ.get('GEMINI_API_KEY')
    if not api_key:
        try:
            config = storage.load_config()
            api_key = config.get('gemini_api_key')
        except FileNotFoundError:
            pass

    grader = None
    if api_key:
        grader = GeminiGrader(api_key)
        logger.info(f"Grader initialized: {grader.model_name}")
    else:
        logger.warning("GEMINI_API_KEY not set; answers will be graded locally")

    service = StudyService(storage, SheetGateway(), grader)
    service.load()

    loop = asyncio.get_event_loop()
    await loop.run_in_executor(None, service.refresh_catalog)


@app.get("/api/status")
async def get_status():
    """Sync indicator and counts."""
    return service.status()


@app.get("/api/settings")
async def get_settings():
    return {"endpoint_url": service.endpoint_url}


@app.put("/api/settings")
async def update_settings(request: SettingsRequest):
    """Save the sheet endpoint and re-sync against it."""
    service.set_endpoint_url(request.endpoint_url)
    loop = asyncio.get_event_loop()
    await loop.run_in_executor(None, service.refresh_catalog)
    return {"endpoint_url": service.endpoint_url, "sync_error": service.sync_error}


@app.post("/api/sync", response_model=SyncResponse)
async def sync_catalog():
    """Re-read the remote sheet on demand."""
    loop = asyncio.get_event_loop()
    refreshed = await loop.run_in_executor(None, service.refresh_catalog)
    return SyncResponse(
        refreshed=refreshed,
        word_count=len(service.catalog),
        sync_error=service.sync_error
    )


@app.get("/api/catalog")
async def get_catalog():
    return service.catalog.to_dict()


@app.get("/api/records/{date}")
async def get_record(date: str):
    """Load a date's record, discarding unsaved edits."""
    drafts.pop(date, None)
    return service.records.load_for_date(date).to_dict()


@app.put("/api/records/{date}/words/{index}")
async def update_word(date: str, index: int, request: WordFieldRequest):
    record = get_draft(date)
    try:
        drafts[date] = service.records.set_field(record, index, request.field, request.value)
    except (IndexError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PreconditionViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    return drafts[date].to_dict()


@app.put("/api/records/{date}")
async def update_details(date: str, request: DetailsRequest):
    record = get_draft(date)
    try:
        drafts[date] = service.records.update_details(record, request.page, request.news_content)
    except PreconditionViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    return drafts[date].to_dict()


@app.post("/api/records/{date}/submit", response_model=SubmitResponse)
async def submit_record(date: str):
    """Complete the record and send it to the sheet."""
    record = get_draft(date)
    loop = asyncio.get_event_loop()
    try:
        committed, outcome = await loop.run_in_executor(None, lambda: service.submit(record))
    except PreconditionViolation as e:
        raise HTTPException(status_code=409 if record.is_completed else 400, detail=str(e))
    except TransientSyncFailure:
        raise HTTPException(status_code=502, detail=service.sync_error)

    drafts.pop(date, None)
    if outcome == SubmitOutcome.CONFIRMED:
        asyncio.create_task(refresh_catalog_later())
    return SubmitResponse(
        record=committed.to_dict(),
        outcome=outcome.value,
        sync_error=service.sync_error
    )


@app.post("/api/records/{date}/reopen")
async def reopen_record(date: str):
    reopened = service.reopen(get_draft(date))
    drafts.pop(date, None)
    return reopened.to_dict()


@app.get("/api/calendar/{year}/{month}")
async def get_calendar(year: int, month: int):
    """Completed dates for a month."""
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Invalid month")
    return {"year": year, "month": month, "completed": service.records.completed_dates(year, month)}


@app.post("/api/tests")
async def start_test(request: StartTestRequest):
    date = request.date or today_string()
    try:
        session = service.start_test(request.mode, get_draft(date))
    except PreconditionViolation as e:
        raise HTTPException(status_code=400, detail=str(e))
    register_session(session)
    return session.to_dict()


@app.get("/api/tests/{session_id}")
async def get_test(session_id: str):
    return get_session(session_id).to_dict()


@app.post("/api/tests/{session_id}/answers")
async def answer_test(session_id: str, request: AnswerRequest):
    session = get_session(session_id)
    try:
        result = await service.engine.answer(session, request.spelling, request.meaning)
    except PreconditionViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    if result is None:
        raise HTTPException(status_code=410, detail="Test was closed")
    # The final answer carries the full results, so the test can go
    if session.is_finished:
        sessions.pop(session_id, None)
    return {"result": result.to_dict(), "session": session.to_dict()}


@app.delete("/api/tests/{session_id}")
async def close_test(session_id: str):
    session = get_session(session_id)
    service.engine.close(session)
    del sessions[session_id]
    return {"closed": True}
