# interviewxpert/services/generation.py

import json
import logging
import uuid
from typing import Any, Dict, List, Optional

from interviewxpert.engine.llm_client import QuestionGenerationClient
from interviewxpert.engine.parsing import (
    QuestionParseError,
    extract_message_content,
    parse_question_payload,
)
from interviewxpert.schemas.generation import (
    GenerateQuestionsRequest,
    GenerateQuestionsResponse,
    RemoteQuestion,
)

logger = logging.getLogger(__name__)


def target_question_count(duration_min: float) -> int:
    """Roughly one question every three minutes, between 8 and 15."""
    return max(8, min(int(duration_min // 3), 15))


def build_system_prompt(request: GenerateQuestionsRequest, num_questions: int) -> str:
    resume = (request.resume_text or "").strip() or "None"
    duration = int(request.duration_min) if float(request.duration_min).is_integer() else request.duration_min

    return f"""
You are an AI assistant generating unique mock interview questions.

### Objective:
Generate {num_questions} questions tailored to the configuration below.

### Configuration:
- Roles: {", ".join(request.roles)}
- Difficulty: {request.level}
- Interview Type: {request.interview_type} (technical, behavioural, or mix)
- Question Types: {", ".join(request.question_types)} (mcq, qa, code, debugging)
- Duration: {duration} minutes
- Input Mode: {request.input_mode} (text, voice, text-voice)
- Resume Summary: {resume}

### Guidelines:
1. Match difficulty to the level: easy is straightforward, medium needs moderate thought, hard needs deeper reasoning.
2. Each question is a JSON object with keys: id (uuid), type ("mcq" | "qa" | "code" | "debugging"), role, level,
   tags, prompt, options (4 strings for MCQ), correctAnswer (option index for MCQ, string for Q&A),
   codeSnippet (code/debugging only), tests (array of {{name, input, expected}}, code/debugging only),
   estimatedTime (seconds), hint (optional), language (optional, default "javascript"),
   rubricTarget ("accuracy", "depth", "structure" or "general").
3. Never reuse an id listed in "usedIds".
4. Behavioural questions should invite structured (STAR) answers.
5. When the resume summary lists skills or projects, use them in at least two questions.
6. Balance the question types according to the "question_types" list.
7. The sum of estimatedTime must not exceed the duration in seconds.
8. Return a pure JSON array of question objects with no commentary.
9. MCQ correctAnswer is a number from 0 to 3.
10. Code questions include starterCode or codeSnippet; debugging questions include buggy code in codeSnippet.
""".strip()


def build_messages(request: GenerateQuestionsRequest, num_questions: int) -> List[Dict[str, str]]:
    user_payload = {
        "roles": request.roles,
        "level": request.level,
        "interviewType": request.interview_type,
        "questionTypes": request.question_types,
        "durationMin": request.duration_min,
        "inputMode": request.input_mode,
        "usedIds": request.used_ids,
        "resumeText": (request.resume_text or "").strip() or "None",
    }
    return [
        {"role": "system", "content": build_system_prompt(request, num_questions)},
        {"role": "user", "content": json.dumps(user_payload)},
    ]


# -------------------------------------------------
# Normalisation
# -------------------------------------------------

def _scalar(value: Any) -> Optional[Any]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        return value
    return None


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _seconds(raw: Dict[str, Any]) -> int:
    value = raw.get("estimatedTime") or raw.get("est_time_s") or 120
    try:
        return int(value)
    except (TypeError, ValueError):
        return 120


def normalize_remote_question(raw: Dict[str, Any], roles: List[str], level: str) -> RemoteQuestion:
    default_role = raw.get("role") or (roles[0] if roles else None)
    correct = raw["correctAnswer"] if raw.get("correctAnswer") is not None else raw.get("correct")
    tags = raw.get("tags")
    if not isinstance(tags, list) or not tags:
        tags = [default_role or "general"]

    return RemoteQuestion(
        id=str(raw.get("id") or f"q-{uuid.uuid4().hex[:12]}"),
        type=_text(raw.get("type")) or "qa",
        prompt=_text(raw.get("prompt")) or _text(raw.get("question")) or "",
        options=raw.get("options") if isinstance(raw.get("options"), list) else [],
        correct_answer=_scalar(correct),
        hint=_text(raw.get("hint")),
        language=_text(raw.get("language")) or "javascript",
        code_snippet=_text(raw.get("codeSnippet")) or _text(raw.get("starterCode")) or _text(raw.get("code")),
        skill=str(default_role or "General"),
        difficulty=_text(raw.get("level")) or level,
        tags=[str(t) for t in tags],
        estimated_time=_seconds(raw),
        rubric_target=_text(raw.get("rubricTarget")) or "general",
        tests=raw.get("tests") if isinstance(raw.get("tests"), list) else None,
    )


class GenerationService:
    """Asks the LLM for questions and normalises whatever comes back."""

    def __init__(self, client: QuestionGenerationClient):
        self.client = client

    def generate(self, request: GenerateQuestionsRequest) -> GenerateQuestionsResponse:
        num_questions = target_question_count(request.duration_min)
        envelope = self.client.complete(
            build_messages(request, num_questions),
            user_id=request.user_id,
        )

        content = extract_message_content(envelope)
        outcome = parse_question_payload(content)
        if not outcome.ok:
            logger.error(f"Could not recover questions from A4F content: {outcome.describe_failures()}")
            raise QuestionParseError(
                "Failed to parse questions from A4F response.",
                details=outcome.describe_failures(),
            )

        logger.info(
            f"Recovered {len(outcome.result.items)} questions "
            f"(strategy={outcome.result.strategy}, shape={outcome.result.shape})"
        )

        used = set(request.used_ids)
        questions = [
            normalize_remote_question(raw, request.roles, request.level)
            for raw in outcome.result.items
            if isinstance(raw, dict) and str(raw.get("id") or "") not in used
        ]

        return GenerateQuestionsResponse(questions=questions, source="a4f", count=len(questions))
