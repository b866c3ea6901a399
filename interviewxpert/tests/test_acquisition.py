"""
Tests for question acquisition: AI generation with static-bank fallback.
"""

from unittest.mock import MagicMock

import pytest
import requests

from interviewxpert.engine.generator import (
    QuestionAcquirer,
    build_remote_request,
    convert_remote_question,
    display_role,
)
from interviewxpert.engine.llm_client import UpstreamError, UpstreamNotConfiguredError
from interviewxpert.engine.parsing import QuestionParseError
from interviewxpert.schemas.assessment import AssessmentConfig
from interviewxpert.schemas.generation import GenerateQuestionsResponse, RemoteQuestion

CONFIG = AssessmentConfig(domains=["finance", "sales"], level="Hard", timed=True, duration=8, input_mode="Both")


def remote_response(count, prefix="ai"):
    questions = [
        RemoteQuestion(
            id=f"{prefix}-{i}",
            type="mcq" if i % 2 == 0 else "qa",
            prompt=f"Generated question {i}",
            options=["w", "x", "y", "z"] if i % 2 == 0 else [],
            correct_answer=2 if i % 2 == 0 else "An answer",
            hint="Think about margins" if i == 0 else None,
        )
        for i in range(count)
    ]
    return GenerateQuestionsResponse(questions=questions, source="a4f", count=count)


def test_display_role():
    assert display_role("soft-skills") == "Soft skills"
    assert display_role("finance") == "Finance"


def test_build_remote_request_maps_config():
    request = build_remote_request(CONFIG, {"b", "a"}, "user-1")

    assert request.roles == ["Finance", "Sales"]
    assert request.level == "hard"
    assert request.interview_type == "mix"
    assert request.question_types == ["mcq", "qa"]
    assert request.duration_min == 8
    assert request.input_mode == "text-voice"
    assert request.used_ids == ["a", "b"]
    assert request.user_id == "user-1"


def test_build_remote_request_raises_short_durations_to_minimum():
    cfg = AssessmentConfig(domains=["finance"], timed=True, duration=2)

    assert build_remote_request(cfg, set(), None).duration_min == 5


def test_convert_remote_mcq_resolves_correct_index():
    question = convert_remote_question(remote_response(1).questions[0], 0, CONFIG)

    assert question.type == "mcq"
    assert question.correct_answer == "y"
    assert question.domain == "finance"
    assert question.level == "Hard"
    assert question.context == "Hint: Think about margins"
    assert question.rationale == "AI-generated question for finance"


def test_convert_remote_types_and_domains_round_robin():
    remote = RemoteQuestion(id="c", type="debugging", prompt="Fix this")

    question = convert_remote_question(remote, 3, CONFIG)

    assert question.type == "case_mini"
    assert question.domain == "sales"
    assert question.tags == ["sales"]


def test_remote_success():
    remote = MagicMock()
    remote.generate.return_value = remote_response(6)
    acquirer = QuestionAcquirer(bank=MagicMock(), remote=remote)

    result = acquirer.acquire(CONFIG, set(), "user-1")

    assert result.source == "a4f"
    assert len(result.questions) == CONFIG.question_count()
    assert result.fallback_reason is None
    remote.generate.assert_called_once()


def test_remote_questions_already_used_are_dropped(bank):
    remote = MagicMock()
    remote.generate.return_value = remote_response(2)
    acquirer = QuestionAcquirer(bank=bank, remote=remote)

    result = acquirer.acquire(CONFIG, {"ai-0"}, "user-1")

    assert [q.id for q in result.questions] == ["ai-1"]


@pytest.mark.parametrize(
    "error",
    [
        requests.ConnectionError("connection refused"),
        requests.Timeout("timed out"),
        UpstreamError("Failed to generate questions from A4F API.", status_code=503),
        UpstreamNotConfiguredError("A4F API key not configured."),
        QuestionParseError("Failed to parse questions from A4F response."),
    ],
)
def test_remote_failure_falls_back_to_bank(bank, error):
    remote = MagicMock()
    remote.generate.side_effect = error
    acquirer = QuestionAcquirer(bank=bank, remote=remote, clock=lambda: 1_700_000_000.0)
    cfg = AssessmentConfig(domains=["finance", "sales"], level="Medium")

    result = acquirer.acquire(cfg, set(), "user-1")

    assert result.source == "static"
    assert result.questions
    assert type(error).__name__ in result.fallback_reason
    remote.generate.assert_called_once()


def test_empty_remote_result_falls_back(bank):
    remote = MagicMock()
    remote.generate.return_value = GenerateQuestionsResponse(questions=[], count=0)
    acquirer = QuestionAcquirer(bank=bank, remote=remote)

    result = acquirer.acquire(AssessmentConfig(domains=["sales"]), set(), "user-1", seed=11)

    assert result.source == "static"
    assert result.fallback_reason == "remote returned no usable questions"


def test_unexpected_errors_are_not_swallowed(bank):
    remote = MagicMock()
    remote.generate.side_effect = RuntimeError("bug")
    acquirer = QuestionAcquirer(bank=bank, remote=remote)

    with pytest.raises(RuntimeError):
        acquirer.acquire(AssessmentConfig(domains=["sales"]), set(), "user-1")


def test_no_remote_uses_bank_directly(bank):
    acquirer = QuestionAcquirer(bank=bank, remote=None)

    result = acquirer.acquire(AssessmentConfig(domains=["finance"]), set(), "user-1", seed=99)

    assert result.source == "static"
    assert result.fallback_reason == "remote generation disabled"


def test_same_seed_same_questions(bank):
    acquirer = QuestionAcquirer(bank=bank, remote=None)
    cfg = AssessmentConfig(domains=["finance", "sales"])

    first = acquirer.acquire(cfg, set(), "user-1", seed=2024)
    second = acquirer.acquire(cfg, set(), "user-2", seed=2024)

    assert [q.id for q in first.questions] == [q.id for q in second.questions]


def test_clock_feeds_the_seed(bank):
    cfg = AssessmentConfig(domains=["finance", "sales"])
    first = QuestionAcquirer(bank=bank, clock=lambda: 1000.0).acquire(cfg, set(), "user-0000000a")
    second = QuestionAcquirer(bank=bank, clock=lambda: 1000.0).acquire(cfg, set(), "user-0000000a")

    assert [q.id for q in first.questions] == [q.id for q in second.questions]


def test_nothing_available_reports_none(bank):
    acquirer = QuestionAcquirer(bank=bank, remote=None)

    result = acquirer.acquire(AssessmentConfig(domains=["legal"]), set(), "user-1", seed=1)

    assert result.source == "none"
    assert result.empty


def test_empty_bank_short_circuits_selection():
    bank = MagicMock()
    bank.is_empty_for.return_value = True
    acquirer = QuestionAcquirer(bank=bank, remote=None)

    result = acquirer.acquire(AssessmentConfig(domains=["legal"]), set(), "user-1", seed=1)

    assert result.source == "none"
    assert result.fallback_reason == "remote generation disabled"
    bank.is_empty_for.assert_called_once_with(["legal"], "Medium")
    bank.entries.assert_not_called()
