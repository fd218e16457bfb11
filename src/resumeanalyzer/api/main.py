"""
src/resumeanalyzer/api/main.py
==============================
FastAPI backend for the resume feedback service.
  - /resume/upload                  → POST, accepts resume file + job context, launches pipeline
  - /resume/upload/{ticket}/status  → GET, progress text for the UI
  - /resume/{record_id}             → GET, stored submission record
  - /resume                         → GET, every stored submission record
"""

from __future__ import annotations

import json
import logging
import uuid
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import BackgroundTasks, Depends, FastAPI, File, Form, HTTPException, UploadFile

from resumeanalyzer.api.status_board import StatusBoard, TicketStatus
from resumeanalyzer.config import Settings, get_settings
from resumeanalyzer.core.contracts import Document, RecordStore
from resumeanalyzer.core.events import UNEXPECTED_ERROR
from resumeanalyzer.core.records import SubmissionRecord, record_key
from resumeanalyzer.pipeline.submission import SubmissionPipeline
from resumeanalyzer.services.analysis_service import GeminiAnalysisService
from resumeanalyzer.services.converter import PdfImageConverter
from resumeanalyzer.services.object_store import LocalObjectStore
from resumeanalyzer.services.record_store import SqliteRecordStore

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
log = logging.getLogger("api")

app = FastAPI(title="Resume Analyzer API")

_board = StatusBoard(ttl_seconds=get_settings().TICKET_TTL_SECONDS)


# ── Dependencies ─────────────────────────────────────────────────────────────

@lru_cache(maxsize=1)
def get_pipeline() -> SubmissionPipeline:
    """Wire the default collaborators from settings."""
    s = get_settings()
    store = LocalObjectStore.from_settings(s)
    return SubmissionPipeline(
        object_store=store,
        converter=PdfImageConverter(dpi=s.RENDER_DPI),
        record_store=SqliteRecordStore.from_settings(s),
        analysis=GeminiAnalysisService(s, store),
        namespace=s.RECORD_NAMESPACE,
    )


def get_record_store(pipeline: SubmissionPipeline = Depends(get_pipeline)) -> RecordStore:
    return pipeline.record_store


def get_board() -> StatusBoard:
    return _board


# ── Helpers ──────────────────────────────────────────────────────────────────

def _record_payload(raw: str) -> Dict[str, Any]:
    try:
        return SubmissionRecord.from_json(raw).model_dump(mode="json", by_alias=True)
    except ValueError:
        # Records written by other clients may not match our model exactly.
        return json.loads(raw)


async def _run_submission(
    pipeline: SubmissionPipeline,
    board: StatusBoard,
    ticket: str,
    company_name: str,
    job_title: str,
    job_description: str,
    document: Document,
) -> None:
    outcome = None
    try:
        outcome = await pipeline.submit(
            company_name, job_title, job_description, document, sink=board.sink_for(ticket)
        )
    finally:
        if outcome is None or not outcome.ok:
            log.info("ticket %s ended without feedback", ticket)
        board.close(ticket, outcome.message if outcome else UNEXPECTED_ERROR)


# ── Endpoints ────────────────────────────────────────────────────────────────

@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/resume/upload")
async def upload_resume(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    company_name: str = Form(default=""),
    job_title: str = Form(default=""),
    job_description: str = Form(default=""),
    settings: Settings = Depends(get_settings),
    pipeline: SubmissionPipeline = Depends(get_pipeline),
    board: StatusBoard = Depends(get_board),
):
    """
    Start a resume analysis.
    Accepts multipart/form-data with:
      - file: PDF resume
      - company_name, job_title, job_description: free text
    Returns { ticket, status }
    """
    # Busy check and ticket claim happen before the first await.
    ticket = uuid.uuid4().hex[:12]
    if pipeline.is_processing or board.try_open(ticket) is None:
        raise HTTPException(409, "A resume is already being analyzed")

    try:
        content = await file.read()
        if not content:
            raise HTTPException(400, "Uploaded resume file is empty")
        if len(content) > settings.MAX_UPLOAD_BYTES:
            raise HTTPException(413, f"Resume exceeds {settings.MAX_UPLOAD_BYTES} bytes")
        filename = file.filename or "resume.pdf"
        if not filename.lower().endswith(".pdf"):
            raise HTTPException(400, "Only PDF resumes are supported")
    except BaseException:
        board.discard(ticket)
        raise

    document = Document(filename=filename, content=content, content_type=file.content_type or "application/pdf")
    log.info("Resume received: %s (%d bytes) ticket=%s", filename, len(content), ticket)

    background_tasks.add_task(
        _run_submission, pipeline, board, ticket, company_name, job_title, job_description, document
    )
    return {"ticket": ticket, "status": "started"}


@app.get("/resume/upload/{ticket}/status", response_model=TicketStatus)
async def upload_status(ticket: str, board: StatusBoard = Depends(get_board)):
    st = board.get(ticket)
    if st is None:
        raise HTTPException(404, f"Ticket {ticket} not found")
    return st


@app.get("/resume/{record_id}")
async def get_resume(
    record_id: str,
    settings: Settings = Depends(get_settings),
    store: RecordStore = Depends(get_record_store),
):
    raw = await store.get(record_key(record_id, settings.RECORD_NAMESPACE))
    if raw is None:
        raise HTTPException(404, f"Resume {record_id} not found")
    return _record_payload(raw)


@app.get("/resume")
async def list_resumes(
    settings: Settings = Depends(get_settings),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, List[Dict[str, Any]]]:
    rows = await store.list(f"{settings.RECORD_NAMESPACE}:")
    return {"resumes": [_record_payload(r) for r in rows]}
