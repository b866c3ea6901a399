# interviewxpert/engine/question_bank.py
"""
Static question bank used when AI generation is unavailable.

The bank is loaded once (from JSON) into an immutable registry and handed to
the acquisition component, so tests can build their own banks in memory.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_BANK_PATH = Path(__file__).resolve().parent.parent / "data" / "question_bank.json"


@dataclass(frozen=True)
class BankEntry:
    type: str
    tags: Tuple[str, ...]
    prompt: str
    options: Optional[Tuple[str, ...]] = None
    correct_answer: Optional[Union[int, float, str]] = None
    hint: Optional[str] = None
    context: Optional[str] = None
    rationale: Optional[str] = None
    estimated_time: int = 120

    @property
    def primary_tag(self) -> str:
        return self.tags[0] if self.tags else "general"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "BankEntry":
        if not raw.get("type") or not raw.get("prompt"):
            raise ValueError("Bank entry requires 'type' and 'prompt'")

        options = raw.get("options")
        return cls(
            type=raw["type"],
            tags=tuple(raw.get("tags") or ()),
            prompt=raw["prompt"],
            options=tuple(options) if options else None,
            correct_answer=raw.get("correct_answer"),
            hint=raw.get("hint"),
            context=raw.get("context"),
            rationale=raw.get("rationale"),
            estimated_time=int(raw.get("estimated_time", 120)),
        )


@dataclass(frozen=True)
class QuestionBank:
    """Registry of bank entries partitioned by domain, then level."""

    partitions: Mapping[str, Mapping[str, Tuple[BankEntry, ...]]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def entries(self, domain: str, level: str) -> Tuple[BankEntry, ...]:
        return self.partitions.get(domain, {}).get(level, ())

    def domains(self) -> List[str]:
        return sorted(self.partitions)

    def is_empty_for(self, domains: Iterable[str], level: str) -> bool:
        return all(not self.entries(domain, level) for domain in domains)

    @staticmethod
    def entry_id(domain: str, level: str, entry: BankEntry, index: int) -> str:
        """Stable composite id: domain, level, type, primary tag, partition index."""
        return f"{domain}-{level}-{entry.type}-{entry.primary_tag}-{index}"

    @classmethod
    def from_dict(cls, raw: Dict[str, Dict[str, List[Dict[str, Any]]]]) -> "QuestionBank":
        partitions = {}
        for domain, levels in raw.items():
            partitions[domain] = MappingProxyType({
                level: tuple(BankEntry.from_dict(item) for item in items)
                for level, items in levels.items()
            })
        return cls(partitions=MappingProxyType(partitions))


def load_question_bank(path: Optional[Union[str, Path]] = None) -> QuestionBank:
    bank_path = Path(path) if path else DEFAULT_BANK_PATH

    with open(bank_path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    bank = QuestionBank.from_dict(raw)
    total = sum(
        len(bank.entries(domain, level))
        for domain in bank.partitions
        for level in bank.partitions[domain]
    )
    logger.info(f"Loaded question bank from {bank_path}: {len(bank.partitions)} domains, {total} entries")
    return bank
