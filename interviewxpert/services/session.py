import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from interviewxpert.core.config import settings
from interviewxpert.engine.gamification import calculate_progress
from interviewxpert.engine.generator import AcquisitionResult, QuestionAcquirer
from interviewxpert.engine.scorer import ScoringEngine
from interviewxpert.models.session import AssessmentSession
from interviewxpert.schemas.assessment import (
    Question,
    QuestionDetail,
    SessionResult,
    SessionStartRequest,
    SubmissionRequest,
)

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    pass


class SessionStateError(Exception):
    """The session is not in a state that allows the operation."""


class InvalidSubmissionError(ValueError):
    pass


class NoQuestionsAvailableError(Exception):
    pass


class PersistenceError(Exception):
    """Writing the session row failed; the transaction was rolled back."""


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands timestamps back without tzinfo
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionService:
    @staticmethod
    def _commit(db: Session, row: AssessmentSession, action: str) -> AssessmentSession:
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Failed to {action} session {row.id}: {exc}")
            raise PersistenceError(f"Failed to {action} assessment session") from exc
        db.refresh(row)
        return row

    @staticmethod
    def used_question_ids(
        db: Session,
        user_id: str,
        now: Optional[datetime] = None,
        window_days: Optional[int] = None,
    ) -> Set[str]:
        """Question ids from the user's completed sessions inside the recency window."""
        now = now or datetime.now(timezone.utc)
        days = settings.USED_QUESTION_WINDOW_DAYS if window_days is None else window_days
        cutoff = now - timedelta(days=days)

        rows = (
            db.query(AssessmentSession.details)
            .filter(AssessmentSession.user_id == user_id)
            .filter(AssessmentSession.status == "completed")
            .filter(AssessmentSession.created_at >= cutoff)
            .all()
        )

        used: Set[str] = set()
        for (details,) in rows:
            for detail in details or []:
                qid = detail.get("qid") if isinstance(detail, dict) else None
                if qid:
                    used.add(qid)
        return used

    @staticmethod
    def start(
        db: Session,
        payload: SessionStartRequest,
        acquirer: QuestionAcquirer,
        now: Optional[datetime] = None,
    ) -> Tuple[AssessmentSession, AcquisitionResult]:
        """
        Acquire questions for a new session and persist it as in progress.
        """
        now = now or datetime.now(timezone.utc)
        config = payload.config

        used_ids = SessionService.used_question_ids(db, payload.user_id, now=now)
        result = acquirer.acquire(config, used_ids, payload.user_id)

        if result.empty:
            raise NoQuestionsAvailableError(
                f"No questions available for {', '.join(config.domains)} at level {config.level}"
            )

        row = AssessmentSession(
            user_id=payload.user_id,
            domains=list(config.domains),
            level=config.level,
            timed=config.timed,
            duration_min=config.duration,
            input_mode=config.input_mode,
            status="in_progress",
            source=result.source,
            questions=[q.model_dump(mode="json") for q in result.questions],
            started_at=now,
            created_at=now,
        )
        db.add(row)
        SessionService._commit(db, row, "create")

        logger.info(
            f"Started session {row.id} for user {payload.user_id}: "
            f"{len(result.questions)} questions from {result.source}"
        )
        return row, result

    @staticmethod
    def get(db: Session, session_id: uuid.UUID) -> AssessmentSession:
        row = db.query(AssessmentSession).filter(AssessmentSession.id == session_id).first()
        if not row:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return row

    @staticmethod
    def questions_of(row: AssessmentSession) -> List[Question]:
        return [Question.model_validate(q) for q in row.questions or []]

    @staticmethod
    def submit(
        db: Session,
        session_id: uuid.UUID,
        submission: SubmissionRequest,
        scorer: ScoringEngine,
        now: Optional[datetime] = None,
    ) -> AssessmentSession:
        """
        Score the answers and close the session.

        Raises:
            SessionNotFoundError, SessionStateError, InvalidSubmissionError,
            PersistenceError
        """
        now = now or datetime.now(timezone.utc)
        row = SessionService.get(db, session_id)

        if row.status != "in_progress":
            raise SessionStateError("Assessment already submitted")

        questions = SessionService.questions_of(row)
        answers = submission.answers

        if len(answers) > len(questions):
            raise InvalidSubmissionError(
                f"Received {len(answers)} answers for {len(questions)} questions"
            )
        out_of_range = sorted(i for i in answers if i < 0 or i >= len(questions))
        if out_of_range:
            raise InvalidSubmissionError(f"Answer indices out of range: {out_of_range}")

        scoring = scorer.evaluate(questions, answers)
        progress = calculate_progress(answers.keys())

        started_at = _aware(row.started_at)
        if row.timed:
            duration_s = row.duration_min * 60
        else:
            duration_s = max(0, int((now - started_at).total_seconds()))

        row.status = "completed"
        row.ended_at = now
        row.duration_s = duration_s
        row.overall_score = scoring.overall_score
        row.details = [d.model_dump(mode="json") for d in scoring.details]
        row.flags = {"xp": progress.xp, "streak": progress.streak}

        SessionService._commit(db, row, "submit")

        logger.info(
            f"Session {row.id} submitted: score={scoring.overall_score} "
            f"answers={len(answers)}/{len(questions)} xp={progress.xp}"
        )
        return row

    @staticmethod
    def to_result(row: AssessmentSession) -> SessionResult:
        flags = row.flags or {}
        return SessionResult(
            session_id=row.id,
            user_id=row.user_id,
            status=row.status,
            source=row.source,
            domains=row.domains or [],
            level=row.level,
            overall_score=row.overall_score,
            details=[QuestionDetail.model_validate(d) for d in row.details or []],
            xp=flags.get("xp", 0),
            streak=flags.get("streak", 0),
            started_at=_aware(row.started_at),
            ended_at=_aware(row.ended_at),
            duration_s=row.duration_s,
        )
