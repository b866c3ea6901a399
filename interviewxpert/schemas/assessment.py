# interviewxpert/schemas/assessment.py

from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

AnswerValue = Union[int, float, str]


class QuestionType(str, Enum):
    """Question types the scoring engine has dedicated rules for."""
    MCQ = "mcq"
    SCENARIO = "scenario"
    ROLEPLAY = "roleplay"
    CASE_MINI = "case_mini"


# =========================
# Assessment configuration
# =========================
class AssessmentConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    domains: List[str] = Field(..., min_length=1)
    level: Literal["Easy", "Medium", "Hard"] = "Medium"
    timed: bool = False
    duration: int = Field(30, ge=1, description="Minutes")
    input_mode: Literal["Text", "Voice", "Both"] = "Text"

    @field_validator("domains")
    @classmethod
    def unique_domains(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

    def question_count(self) -> int:
        if self.timed:
            return max(1, min(self.duration // 2, 16))
        return 12


# =========================
# Questions
# =========================
class PublicQuestion(BaseModel):
    """What the answering client is allowed to see."""
    id: str
    domain: str
    level: str
    type: str
    tags: List[str] = []
    prompt: str
    context: Optional[str] = None
    hint: Optional[str] = None
    options: Optional[List[str]] = None
    estimated_time: int = 120


class Question(PublicQuestion):
    model_config = ConfigDict(frozen=True)

    correct_answer: Optional[AnswerValue] = None
    rationale: Optional[str] = None

    def public_view(self) -> PublicQuestion:
        return PublicQuestion(**self.model_dump(exclude={"correct_answer", "rationale"}))


class Answer(BaseModel):
    value: Optional[AnswerValue] = None
    time_spent: int = Field(0, ge=0, description="Seconds")
    transcript: Optional[str] = None


# =========================
# Results
# =========================
class RubricBreakdown(BaseModel):
    clarity: float
    relevance: float
    structure: float
    communication: float
    domain_accuracy: float


class QuestionDetail(BaseModel):
    """Persisted per-question row of a completed session."""
    index: int
    qid: str
    domain: str
    level: str
    type: str
    prompt: str
    answered: bool
    answer_text: str = ""
    transcript_text: str = ""
    mcq_choice: Optional[AnswerValue] = None
    correct: Optional[bool] = None
    numeric_value: Optional[float] = None
    rationale: str = ""
    rubric: Optional[RubricBreakdown] = None
    score: Optional[float] = None
    weight: float = 0.0
    time_s: int = 0


class SessionStartRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    config: AssessmentConfig


class SessionStartResponse(BaseModel):
    session_id: UUID
    source: str
    count: int
    questions: List[PublicQuestion]


class SubmissionRequest(BaseModel):
    answers: Dict[int, Answer]  # keyed by question index, may be sparse


class SessionResult(BaseModel):
    session_id: UUID
    user_id: str
    status: str
    source: str
    domains: List[str]
    level: str
    overall_score: Optional[float] = None
    details: List[QuestionDetail] = []
    xp: int = 0
    streak: int = 0
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration_s: Optional[int] = None
