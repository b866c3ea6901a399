import logging
import os
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from interviewxpert.api.deps import get_question_acquirer, get_scoring_engine
from interviewxpert.core.config import settings
from interviewxpert.db.session import get_db
from interviewxpert.engine.generator import QuestionAcquirer
from interviewxpert.engine.scorer import ScoringEngine
from interviewxpert.reports.report_builder import generate_session_report
from interviewxpert.reports.report_docx import generate_report_docx
from interviewxpert.schemas.assessment import (
    SessionResult,
    SessionStartRequest,
    SessionStartResponse,
    SubmissionRequest,
)
from interviewxpert.services.session import (
    InvalidSubmissionError,
    NoQuestionsAvailableError,
    PersistenceError,
    SessionNotFoundError,
    SessionService,
    SessionStateError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assessments", tags=["Assessment Sessions"])

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _load(db: Session, session_id: uuid.UUID):
    try:
        return SessionService.get(db, session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


# -------------------------------------------------
# POST: Start session (acquire questions)
# -------------------------------------------------

@router.post(
    "/sessions",
    response_model=SessionStartResponse,
    status_code=status.HTTP_201_CREATED,
)
def start_session(
    payload: SessionStartRequest,
    db: Session = Depends(get_db),
    acquirer: QuestionAcquirer = Depends(get_question_acquirer),
):
    try:
        row, result = SessionService.start(db=db, payload=payload, acquirer=acquirer)
    except NoQuestionsAvailableError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to save assessment session")

    # correct answers and rationales stay server side until submission
    return SessionStartResponse(
        session_id=row.id,
        source=result.source,
        count=len(result.questions),
        questions=[q.public_view() for q in result.questions],
    )


# -------------------------------------------------
# POST: Submit answers
# -------------------------------------------------

@router.post("/sessions/{session_id}/submit", response_model=SessionResult)
def submit_session(
    session_id: uuid.UUID,
    submission: SubmissionRequest,
    db: Session = Depends(get_db),
    scorer: ScoringEngine = Depends(get_scoring_engine),
):
    try:
        row = SessionService.submit(db=db, session_id=session_id, submission=submission, scorer=scorer)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except InvalidSubmissionError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to save assessment session")

    return SessionService.to_result(row)


# -------------------------------------------------
# GET: Session info
# -------------------------------------------------

@router.get("/sessions/{session_id}", response_model=SessionResult)
def get_session(session_id: uuid.UUID, db: Session = Depends(get_db)):
    return SessionService.to_result(_load(db, session_id))


# -------------------------------------------------
# GET: Report (JSON or DOCX download)
# -------------------------------------------------

@router.get("/sessions/{session_id}/report")
def get_session_report(
    session_id: uuid.UUID,
    download: bool = Query(False, description="Set true to download the DOCX report"),
    db: Session = Depends(get_db),
):
    row = _load(db, session_id)
    if row.status != "completed":
        raise HTTPException(status_code=409, detail="Session has not been submitted yet")

    report = generate_session_report(SessionService.to_result(row))

    if not download:
        return report

    os.makedirs(settings.REPORTS_DIR, exist_ok=True)
    file_path = os.path.join(settings.REPORTS_DIR, f"session_report_{row.id}.docx")
    generate_report_docx(report, file_path)

    return FileResponse(
        path=file_path,
        filename=os.path.basename(file_path),
        media_type=DOCX_MEDIA_TYPE,
    )
