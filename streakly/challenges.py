"""
Daily Challenges - Generation, progress tracking and reward claiming

A batch of three challenges is issued per day and expires at the next local
midnight. Progress is recomputed from the statistics bundle on every
refresh, since tasks and habits keep changing after a batch is issued.

Challenge lifecycle:
    active -> completed (progress reached target, set once)
           -> claimed (reward credited, set once)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from streakly.models import CHALLENGE_TYPES, DailyChallenge, StatisticsBundle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChallengeTemplate:
    """Blueprint for one challenge in the daily batch."""

    id: str
    title: str
    description: str
    type: str
    target: float
    points: int

    def __post_init__(self):
        if self.type not in CHALLENGE_TYPES:
            raise ValueError(f"Challenge {self.id}: invalid type {self.type!r}")
        if self.target <= 0:
            raise ValueError(f"Challenge {self.id}: target must be positive")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChallengeTemplate":
        return cls(
            id=data["id"],
            title=data.get("title", data["id"]),
            description=data.get("description", ""),
            type=data["type"],
            target=data["target"],
            points=int(data.get("points", 0)),
        )


DAILY_CHALLENGES = [
    ChallengeTemplate(
        id="daily-tasks",
        title="Daily Achiever",
        description="Complete 5 tasks today",
        type="tasks",
        target=5,
        points=25,
    ),
    ChallengeTemplate(
        id="habit-streak",
        title="Habit Hero",
        description="Complete all your habits today",
        type="habits",
        target=1,
        points=30,
    ),
    ChallengeTemplate(
        id="productivity-boost",
        title="Productivity Boost",
        description="Maintain 80% completion rate",
        type="productivity",
        target=80,
        points=35,
    ),
]


def next_midnight(now: datetime) -> datetime:
    """Start of the day after ``now``, in now's timezone."""
    return datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)


def generate_daily_challenges(
    now: datetime, templates: Sequence[ChallengeTemplate] = DAILY_CHALLENGES
) -> List[DailyChallenge]:
    """
    Issue a fresh batch of challenges with zero progress.

    Args:
        now: Current local time (the batch expires at the next midnight)
        templates: Challenge blueprints

    Returns:
        List of DailyChallenge
    """
    expires_at = next_midnight(now)
    return [
        DailyChallenge(
            id=t.id,
            title=t.title,
            description=t.description,
            type=t.type,
            target=t.target,
            points=t.points,
            expires_at=expires_at,
        )
        for t in templates
    ]


def needs_regeneration(batch: Sequence[DailyChallenge], now: datetime) -> bool:
    """A batch is stale when it is empty or now has reached its expiry."""
    return not batch or now >= batch[0].expires_at


def ensure_active_batch(
    batch: Sequence[DailyChallenge],
    now: datetime,
    templates: Sequence[ChallengeTemplate] = DAILY_CHALLENGES,
) -> Tuple[List[DailyChallenge], bool]:
    """
    Return the batch, replacing it if it is empty or expired.

    Returns:
        (batch, regenerated)
    """
    if needs_regeneration(batch, now):
        if batch:
            logger.info(f"Challenge batch expired at {batch[0].expires_at.isoformat()}, regenerating")
        return generate_daily_challenges(now, templates), True
    return list(batch), False


def challenge_progress(challenge: DailyChallenge, bundle: StatisticsBundle) -> float:
    """Compute one challenge's progress against the statistics bundle."""
    if challenge.type == "tasks":
        return min(bundle.completed_tasks, challenge.target)
    if challenge.type == "habits":
        return 1 if bundle.all_habits_completed else 0
    return min(bundle.completion_rate, challenge.target)


def refresh_progress(batch: Sequence[DailyChallenge], bundle: StatisticsBundle) -> List[DailyChallenge]:
    """
    Recompute progress for every challenge in the batch.

    A challenge becomes completed once progress reaches its target and stays
    completed even if progress later drops.

    Returns:
        New list of challenges (inputs are not modified)
    """
    refreshed = []
    for challenge in batch:
        progress = challenge_progress(challenge, bundle)
        completed = challenge.completed or progress >= challenge.target
        if completed and not challenge.completed:
            logger.info(f"Challenge completed: {challenge.title}")
        refreshed.append(challenge.copy(progress=progress, completed=completed))
    return refreshed


def claim_challenge(challenge: DailyChallenge, total_points: int) -> Tuple[DailyChallenge, int, bool]:
    """
    Claim a completed challenge's reward.

    Claiming an already-claimed or not-yet-completed challenge is a no-op.

    Args:
        challenge: Challenge to claim
        total_points: Current point total

    Returns:
        (challenge, new_total_points, credited)
    """
    if challenge.claimed or not challenge.completed:
        return challenge, total_points, False
    return challenge.copy(claimed=True), total_points + challenge.points, True


def find_challenge(batch: Sequence[DailyChallenge], challenge_id: str) -> Optional[DailyChallenge]:
    return next((c for c in batch if c.id == challenge_id), None)


def batch_summary(batch: Sequence[DailyChallenge]) -> Dict[str, int]:
    return {
        "total": len(batch),
        "completed": sum(1 for c in batch if c.completed),
        "claimed": sum(1 for c in batch if c.claimed),
    }


__all__ = [
    "ChallengeTemplate",
    "DAILY_CHALLENGES",
    "next_midnight",
    "generate_daily_challenges",
    "needs_regeneration",
    "ensure_active_batch",
    "challenge_progress",
    "refresh_progress",
    "claim_challenge",
    "find_challenge",
    "batch_summary",
]
