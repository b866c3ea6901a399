# interviewxpert/engine/gamification.py

from dataclasses import dataclass
from typing import Iterable

XP_PER_ANSWER = 2
STREAK_BONUS_XP = 5
STREAK_BONUS_EVERY = 5


@dataclass(frozen=True)
class Progress:
    xp: int = 0
    streak: int = 0


def calculate_progress(answered_indices: Iterable[int]) -> Progress:
    """
    Replay the answer sequence to get session XP and streak.

    Every answer earns XP. The streak grows when the previous question was
    answered too; reaching a new step from a streak that sits on a multiple
    of five pays a bonus.
    """
    answered = sorted(set(answered_indices))
    seen = set()
    xp = 0
    streak = 0

    for index in answered:
        xp += XP_PER_ANSWER
        if index > 0 and (index - 1) in seen:
            if streak > 0 and streak % STREAK_BONUS_EVERY == 0:
                xp += STREAK_BONUS_XP
            streak += 1
        seen.add(index)

    return Progress(xp=xp, streak=streak)
