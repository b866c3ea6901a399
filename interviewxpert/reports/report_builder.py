from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from interviewxpert.schemas.assessment import SessionResult

GRADE_BANDS: List[Tuple[float, str]] = [
    (95, "A+"),
    (90, "A"),
    (85, "A-"),
    (80, "B+"),
    (75, "B"),
    (70, "B-"),
    (65, "C+"),
    (60, "C"),
]

RUBRIC_DIMENSIONS = ("clarity", "relevance", "structure", "communication", "domain_accuracy")

SUGGESTIONS = [
    "Practice the STAR method for behavioral questions to improve structure and clarity",
    "Focus on quantifying your achievements with specific metrics and outcomes",
    "Develop domain-specific vocabulary to demonstrate deeper expertise",
    "Work on active listening skills to better understand stakeholder needs",
    "Practice explaining complex concepts in simple, accessible language",
]


def grade_band(score: float) -> str:
    for threshold, grade in GRADE_BANDS:
        if score >= threshold:
            return grade
    return "C-"


def _label(domain: str) -> str:
    return domain.replace("-", " ")


def generate_session_report(result: SessionResult) -> Dict[str, Any]:
    overall = result.overall_score or 0.0
    answered = [d for d in result.details if d.answered and d.score is not None]

    # -------------------------
    # DOMAIN SCORES
    # -------------------------
    per_domain: Dict[str, List[float]] = defaultdict(list)
    for d in answered:
        per_domain[d.domain].append(d.score)

    domain_scores = {
        domain: round(sum(scores) / len(scores) * 100, 1)
        for domain, scores in per_domain.items()
    }

    ranked = sorted(domain_scores.items(), key=lambda item: (-item[1], item[0]))
    strengths = [_label(domain) for domain, _ in ranked[:2]]
    weaknesses = [_label(domain) for domain, _ in sorted(ranked, key=lambda item: (item[1], item[0]))[:2]]

    # -------------------------
    # RUBRIC AVERAGES (free text only)
    # -------------------------
    rubrics = [d.rubric for d in answered if d.rubric is not None]
    rubric_averages = {
        dim: round(sum(getattr(r, dim) for r in rubrics) / len(rubrics), 2)
        for dim in RUBRIC_DIMENSIONS
    } if rubrics else {}

    # -------------------------
    # SUMMARY
    # -------------------------
    grade = grade_band(overall)
    summary = [
        f"The assessment was completed with an overall score of {overall:.1f}%.",
        f"This corresponds to grade {grade}.",
        f"{len(answered)} of {len(result.details)} questions were answered.",
        f"Questions were sourced from the {'AI generator' if result.source == 'a4f' else 'static question bank'}.",
    ]
    if strengths:
        summary.append(f"Strongest area: {strengths[0]}.")
    if weaknesses and len(domain_scores) > 1:
        summary.append(f"Area needing most attention: {weaknesses[0]}.")

    return {
        "session_id": str(result.session_id),
        "user_id": result.user_id,
        "summary": summary,
        "scores": {
            "overall_score": overall,
            "grade": grade,
            "domain_scores": domain_scores,
            "rubric_averages": rubric_averages,
        },
        "strengths": strengths,
        "weaknesses": weaknesses,
        "suggestions": list(SUGGESTIONS),
        "gamification": {"xp": result.xp, "streak": result.streak},
        "question_breakdown": [d.model_dump(mode="json") for d in result.details],
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }
