"""
Tests for session persistence: start, submit, and the used-question window.
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from interviewxpert.schemas.assessment import (
    Answer,
    AssessmentConfig,
    SessionStartRequest,
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

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def start_request(domains=("finance",), timed=True, duration=8, user_id="user-1"):
    return SessionStartRequest(
        user_id=user_id,
        config=AssessmentConfig(domains=list(domains), level="Medium", timed=timed, duration=duration),
    )


def correct_answers(questions):
    return {i: Answer(value=q.correct_answer) for i, q in enumerate(questions) if q.correct_answer is not None}


def test_start_persists_in_progress_session(db_session, acquirer):
    row, result = SessionService.start(db_session, start_request(), acquirer, now=NOW)

    assert row.status == "in_progress"
    assert row.source == "static"
    assert len(row.questions) == 4
    assert result.questions[0].id == row.questions[0]["id"]
    assert "correct_answer" in row.questions[0]


def test_start_without_questions(db_session, acquirer):
    with pytest.raises(NoQuestionsAvailableError):
        SessionService.start(db_session, start_request(domains=["legal"]), acquirer, now=NOW)


def test_submit_scores_and_completes(db_session, acquirer, scorer):
    row, _ = SessionService.start(db_session, start_request(), acquirer, now=NOW)
    questions = SessionService.questions_of(row)
    answers = correct_answers(questions)

    submitted = SessionService.submit(
        db_session, row.id, SubmissionRequest(answers=answers), scorer, now=NOW + timedelta(minutes=3)
    )

    assert submitted.status == "completed"
    assert submitted.duration_s == 8 * 60
    assert submitted.overall_score == 100.0
    assert len(submitted.details) == 4
    assert submitted.flags["xp"] >= 2 * len(answers)

    result = SessionService.to_result(submitted)
    assert result.ended_at == NOW + timedelta(minutes=3)
    assert result.started_at.tzinfo is not None


def test_untimed_duration_is_elapsed_time(db_session, acquirer, scorer):
    row, _ = SessionService.start(db_session, start_request(timed=False), acquirer, now=NOW)

    submitted = SessionService.submit(
        db_session, row.id, SubmissionRequest(answers={}), scorer, now=NOW + timedelta(seconds=95)
    )

    assert submitted.duration_s == 95
    assert submitted.overall_score == 0.0


def test_double_submit_is_rejected(db_session, acquirer, scorer):
    row, _ = SessionService.start(db_session, start_request(), acquirer, now=NOW)
    SessionService.submit(db_session, row.id, SubmissionRequest(answers={}), scorer, now=NOW)

    with pytest.raises(SessionStateError):
        SessionService.submit(db_session, row.id, SubmissionRequest(answers={}), scorer, now=NOW)


def test_submit_rejects_out_of_range_index(db_session, acquirer, scorer):
    row, _ = SessionService.start(db_session, start_request(), acquirer, now=NOW)

    with pytest.raises(InvalidSubmissionError):
        SessionService.submit(db_session, row.id, SubmissionRequest(answers={9: Answer(value="x")}), scorer)


def test_submit_rejects_too_many_answers(db_session, acquirer, scorer):
    row, _ = SessionService.start(db_session, start_request(duration=2), acquirer, now=NOW)
    answers = {i: Answer(value="x") for i in range(3)}

    with pytest.raises(InvalidSubmissionError):
        SessionService.submit(db_session, row.id, SubmissionRequest(answers=answers), scorer)


def test_unknown_session(db_session):
    with pytest.raises(SessionNotFoundError):
        SessionService.get(db_session, uuid.uuid4())


def test_completed_sessions_feed_used_ids(db_session, acquirer, scorer):
    row, _ = SessionService.start(db_session, start_request(), acquirer, now=NOW)

    # in-progress sessions do not count
    assert SessionService.used_question_ids(db_session, "user-1", now=NOW) == set()

    SessionService.submit(db_session, row.id, SubmissionRequest(answers={}), scorer, now=NOW)
    used = SessionService.used_question_ids(db_session, "user-1", now=NOW)

    assert used == {q["id"] for q in row.questions}
    assert SessionService.used_question_ids(db_session, "user-2", now=NOW) == set()
    assert SessionService.used_question_ids(db_session, "user-1", now=NOW + timedelta(days=91)) == set()


def test_next_session_avoids_recent_questions(db_session, acquirer, scorer):
    first, _ = SessionService.start(db_session, start_request(), acquirer, now=NOW)
    SessionService.submit(db_session, first.id, SubmissionRequest(answers={}), scorer, now=NOW)

    second, _ = SessionService.start(db_session, start_request(), acquirer, now=NOW + timedelta(hours=1))

    first_ids = {q["id"] for q in first.questions}
    second_ids = {q["id"] for q in second.questions}
    assert len(second_ids) == 1
    assert not first_ids & second_ids


def test_commit_failure_raises_persistence_error(acquirer):
    db = MagicMock()
    db.query.return_value.filter.return_value.filter.return_value.filter.return_value.all.return_value = []
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("disk full"))

    with pytest.raises(PersistenceError):
        SessionService.start(db, start_request(), acquirer, now=NOW)

    db.rollback.assert_called_once()
