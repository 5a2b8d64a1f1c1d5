"""
Gamification Engine for Streakly.

Runs evaluation passes over a user's tasks and habits: builds the
statistics bundle, unlocks achievements, refreshes the daily challenge
batch and reports level progress. Also applies task/habit changes that
earn action points.

The scoring components themselves are pure; this module is the caller that
persists their results through Storage, which guarantees every award is
credited exactly once.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional

from streakly.achievements import AchievementDefinition, achievement_progress, evaluate_achievements
from streakly.challenges import claim_challenge, ensure_active_batch, find_challenge, refresh_progress
from streakly.config import GamificationConfig
from streakly.database import Storage, new_id
from streakly.levels import LevelProgress, calculate_level_progress
from streakly.logging_config import LogContext, get_logger
from streakly.models import Activity, DailyChallenge, Habit, Profile, StatisticsBundle, Task
from streakly.scoring import ProductivityScore, build_statistics, calculate_productivity_score
from streakly.social import ShareableContent, generate_shareable_content
from streakly.streaks import get_streak_tier, milestone_reached, reset_for_new_day, toggle_completion

logger = get_logger(__name__)

TASK_FIELDS = ("text", "completed", "priority", "category", "due_date")
HABIT_FIELDS = ("name", "category", "target_frequency")
PROFILE_FIELDS = ("username", "email", "date_of_birth", "mobile_number")

SUMMARY_WINDOW_DAYS = 7


class NotFoundError(LookupError):
    """Raised when a task, habit or challenge does not exist for the user."""


@dataclass
class EvaluationResult:
    """Outcome of one evaluation pass."""

    statistics: StatisticsBundle
    productivity: ProductivityScore
    level: LevelProgress
    newly_unlocked: List[AchievementDefinition]
    challenges: List[DailyChallenge]
    challenges_regenerated: bool
    points_earned: int
    achievements: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statistics": self.statistics.to_dict(),
            "productivity": self.productivity.to_dict(),
            "level": self.level.to_dict(),
            "newly_unlocked": [a.to_dict() for a in self.newly_unlocked],
            "challenges": [c.to_dict() for c in self.challenges],
            "challenges_regenerated": self.challenges_regenerated,
            "points_earned": self.points_earned,
            "achievements": self.achievements,
        }


class GamificationEngine:
    """
    Applies the gamification rules for one storage backend.

    Args:
        storage: Persistence collaborator
        config: Static gamification rules
        clock: Returns the current local time; injectable for tests
    """

    def __init__(
        self,
        storage: Storage,
        config: Optional[GamificationConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.storage = storage
        self.config = config or GamificationConfig()
        self.clock = clock

    # ===== SNAPSHOTS =====

    def load_tasks(self, user_id: str) -> List[Task]:
        return self.storage.list_tasks(user_id)

    def load_habits(self, user_id: str) -> List[Habit]:
        """
        Load habits, clearing yesterday's completed_today flags.

        The reset happens on read; nothing runs at midnight.
        """
        now = self.clock()
        habits = []
        for habit in self.storage.list_habits(user_id):
            fresh = reset_for_new_day(habit, now)
            if fresh is not habit:
                self.storage.save_habit(user_id, fresh)
            habits.append(fresh)
        return habits

    # ===== EVALUATION =====

    def evaluate(self, user_id: str) -> EvaluationResult:
        """
        Run a full evaluation pass for a user.

        Steps:
        1. Snapshot today's habit completion (perfect-day tracking)
        2. Unlock achievements, repeating while unlock points satisfy more
        3. Regenerate the challenge batch if stale and refresh its progress

        Returns:
            EvaluationResult
        """
        with LogContext(logger, user_id=user_id):
            now = self.clock()
            tasks = self.load_tasks(user_id)
            habits = self.load_habits(user_id)
            points_earned = self._record_day(user_id, habits, now)

            state = self.storage.get_gamification_state(user_id)
            total_points = state.total_points
            unlocked = set(state.unlocked_achievement_ids)
            newly_unlocked: List[AchievementDefinition] = []

            bundle = build_statistics(tasks, habits, total_points, state.perfect_days)
            # Unlock points can push total_points over another threshold
            for _ in range(len(self.config.achievements)):
                candidates = evaluate_achievements(bundle, unlocked, self.config.achievements)
                if not candidates:
                    break
                recorded, credited = self.storage.record_unlocks(user_id, candidates, now)
                unlocked.update(a.id for a in candidates)
                newly_unlocked.extend(recorded)
                total_points += credited
                points_earned += credited
                bundle = replace(bundle, total_points=total_points)
                for achievement in recorded:
                    logger.info(
                        f"Achievement unlocked for {user_id}: {achievement.title} (+{achievement.points} points)"
                    )
                    self.storage.create_activity(
                        user_id, "achievement", f"Unlocked {achievement.title}", achievement.icon, now
                    )

            batch, regenerated = ensure_active_batch(
                state.active_challenges, now, self.config.challenge_templates
            )
            batch = refresh_progress(batch, bundle)
            self.storage.save_challenge_batch(user_id, batch, replace=regenerated)

            return EvaluationResult(
                statistics=bundle,
                productivity=calculate_productivity_score(tasks, habits),
                level=calculate_level_progress(total_points, self.config.levels),
                newly_unlocked=newly_unlocked,
                challenges=batch,
                challenges_regenerated=regenerated,
                points_earned=points_earned,
                achievements=achievement_progress(bundle, unlocked, self.config.achievements),
            )

    def _record_day(self, user_id: str, habits: List[Habit], now: datetime) -> int:
        """Store today's snapshot and award the perfect-day bonus once per day."""
        completed = sum(1 for h in habits if h.completed_today)
        self.storage.record_daily_snapshot(user_id, now.date(), len(habits), completed, now)
        if habits and completed == len(habits):
            return self._award(user_id, "perfect_day", f"perfect_day:{now.date().isoformat()}", now)
        return 0

    def _award(self, user_id: str, action: str, award_key: str, now: datetime) -> int:
        points = self.config.points_for_action(action)
        if self.storage.award_points(user_id, award_key, points, now):
            return points
        return 0

    # ===== CHALLENGES =====

    def claim(self, user_id: str, challenge_id: str) -> Dict[str, Any]:
        """
        Claim a daily challenge reward.

        Progress is refreshed first so a challenge completed since the last
        pass can be claimed. A second claim credits nothing.

        Raises:
            NotFoundError: No challenge with that id in the active batch
        """
        result = self.evaluate(user_id)
        challenge = find_challenge(result.challenges, challenge_id)
        if challenge is None:
            raise NotFoundError(f"Challenge not found: {challenge_id}")

        now = self.clock()
        claimed, _, eligible = claim_challenge(challenge, result.level.total_points)
        credited = eligible and self.storage.claim_challenge(user_id, challenge, now)
        if credited:
            logger.info(f"Challenge claimed by {user_id}: {challenge.title} (+{challenge.points} points)")
            self.storage.create_activity(
                user_id, "challenge", f"Completed challenge {challenge.title}", "🎯", now
            )
        else:
            claimed = challenge

        state = self.storage.get_gamification_state(user_id)
        return {
            "challenge": claimed.to_dict(),
            "credited": bool(credited),
            "points_awarded": challenge.points if credited else 0,
            "total_points": state.total_points,
        }

    def level(self, user_id: str) -> LevelProgress:
        state = self.storage.get_gamification_state(user_id)
        return calculate_level_progress(state.total_points, self.config.levels)

    # ===== TASKS =====

    def create_task(self, user_id: str, data: Mapping[str, Any]) -> Task:
        now = self.clock()
        task = Task.from_dict({**_only(data, TASK_FIELDS), "id": new_id(), "created_at": now})
        if task.completed:
            task = replace(task, completed_at=now)
        self.storage.create_task(user_id, task)
        if task.completed:
            self._award(user_id, "task_completed", f"task_completed:{task.id}", now)
        return task

    def update_task(self, user_id: str, task_id: str, changes: Mapping[str, Any]) -> Task:
        """
        Apply field changes to a task.

        Completing a task stamps completed_at and awards task_completed
        points once per task; reopening it clears completed_at.
        """
        current = self.storage.get_task(user_id, task_id)
        if current is None:
            raise NotFoundError(f"Task not found: {task_id}")

        now = self.clock()
        merged = {**current.to_dict(), **_only(changes, TASK_FIELDS)}
        task = Task.from_dict(merged)
        if task.completed and not current.completed:
            task = replace(task, completed_at=now)
        elif not task.completed:
            task = replace(task, completed_at=None)

        self.storage.save_task(user_id, task)
        if task.completed and not current.completed:
            self._award(user_id, "task_completed", f"task_completed:{task.id}", now)
            self.storage.create_activity(user_id, "task", f"Completed {task.text}", "✅", now)
        return task

    def delete_task(self, user_id: str, task_id: str) -> None:
        if not self.storage.delete_task(user_id, task_id):
            raise NotFoundError(f"Task not found: {task_id}")

    # ===== HABITS =====

    def create_habit(self, user_id: str, data: Mapping[str, Any]) -> Habit:
        habit = Habit.from_dict({**_only(data, HABIT_FIELDS), "id": new_id(), "created_at": self.clock()})
        self.storage.create_habit(user_id, habit)
        return habit

    def update_habit(self, user_id: str, habit_id: str, changes: Mapping[str, Any]) -> Habit:
        """Rename or recategorize a habit. Streak and completion change only via toggle."""
        current = self.storage.get_habit(user_id, habit_id)
        if current is None:
            raise NotFoundError(f"Habit not found: {habit_id}")
        habit = Habit.from_dict({**current.to_dict(), **_only(changes, HABIT_FIELDS)})
        self.storage.save_habit(user_id, habit)
        return habit

    def delete_habit(self, user_id: str, habit_id: str) -> None:
        if not self.storage.delete_habit(user_id, habit_id):
            raise NotFoundError(f"Habit not found: {habit_id}")

    def toggle_habit(self, user_id: str, habit_id: str) -> Dict[str, Any]:
        """
        Toggle today's completion of a habit.

        Completing awards habit_completed once per habit per day, plus a
        streak milestone bonus when the streak lands on 7, 14 or 30.
        """
        current = self.storage.get_habit(user_id, habit_id)
        if current is None:
            raise NotFoundError(f"Habit not found: {habit_id}")

        now = self.clock()
        current = reset_for_new_day(current, now)
        habit = toggle_completion(current, now, self.config.enforce_streak_contiguity)
        self.storage.save_habit(user_id, habit)

        points = 0
        milestone = None
        if habit.completed_today:
            day = now.date().isoformat()
            points += self._award(user_id, "habit_completed", f"habit_completed:{habit.id}:{day}", now)
            milestone = milestone_reached(habit.streak)
            if milestone:
                points += self._award(
                    user_id, f"streak_milestone_{milestone}", f"streak_milestone_{milestone}:{habit.id}:{day}", now
                )
                self.storage.create_activity(
                    user_id, "streak", f"{habit.name}: {milestone}-day streak", "🔥", now
                )

        return {
            "habit": habit.to_dict(),
            "tier": get_streak_tier(habit.streak).to_dict(),
            "milestone": milestone,
            "points_earned": points,
        }

    # ===== PROFILE AND ACTIVITY FEED =====

    def get_profile(self, user_id: str) -> Profile:
        profile = self.storage.get_profile(user_id)
        if profile is None:
            raise NotFoundError(f"Profile not found: {user_id}")
        return profile

    def update_profile(self, user_id: str, changes: Mapping[str, Any]) -> Profile:
        """Create the profile on first save; later saves change only the fields given."""
        current = self.storage.get_profile(user_id)
        base = current.to_dict() if current else {}
        profile = Profile.from_dict({**base, **_only(changes, PROFILE_FIELDS), "user_id": user_id})
        return self.storage.save_profile(profile, self.clock())

    def log_activity(self, user_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        activity = Activity.from_dict(data)
        return self.storage.create_activity(
            user_id, activity.type, activity.message, activity.icon, self.clock()
        )

    # ===== SHARING =====

    def shareable(self, user_id: str, share_type: str, item_id: Optional[str] = None) -> ShareableContent:
        """
        Build a share card from the user's own progress.

        Args:
            user_id: Owner of the milestone
            share_type: achievement, streak, level, challenge or summary
            item_id: Achievement, habit or challenge id. Defaults to the
                latest unlock, the longest streak or the first completed
                challenge.

        Raises:
            NotFoundError: Nothing of that type to share yet
            ValueError: The named challenge is not completed
        """
        if share_type == "achievement":
            unlocked = self.storage.list_unlocked_achievements(user_id)
            if item_id is None and unlocked:
                item_id = max(unlocked, key=unlocked.get)
            achievement = next(
                (a for a in self.config.achievements if a.id == item_id and a.id in unlocked), None
            )
            if achievement is None:
                raise NotFoundError(f"No unlocked achievement to share: {item_id}")
            return generate_shareable_content(share_type, achievement.to_dict())

        if share_type == "streak":
            habits = self.storage.list_habits(user_id)
            if item_id is None:
                habit = max(habits, key=lambda h: h.streak, default=None)
            else:
                habit = next((h for h in habits if h.id == item_id), None)
            if habit is None:
                raise NotFoundError(f"Habit not found: {item_id}")
            return generate_shareable_content(share_type, {"streak": habit.streak, "habit_name": habit.name})

        if share_type == "level":
            progress = self.level(user_id)
            return generate_shareable_content(
                share_type,
                {
                    "title": progress.current_level.title,
                    "level": progress.current_level.level,
                    "points": progress.total_points,
                },
            )

        if share_type == "challenge":
            batch = self.storage.get_gamification_state(user_id).active_challenges
            if item_id is None:
                challenge = next((c for c in batch if c.completed), None)
            else:
                challenge = find_challenge(batch, item_id)
            if challenge is None:
                raise NotFoundError(f"No completed challenge to share: {item_id}")
            if not challenge.completed:
                raise ValueError(f"Challenge {challenge.id} is not completed yet")
            return generate_shareable_content(share_type, challenge.to_dict())

        if share_type == "summary":
            since = self.clock() - timedelta(days=SUMMARY_WINDOW_DAYS)
            recent = [
                t for t in self.storage.list_tasks(user_id)
                if t.completed and (t.completed_at or t.created_at or since) >= since
            ]
            habits = self.storage.list_habits(user_id)
            return generate_shareable_content(
                share_type,
                {
                    "tasks": len(recent),
                    "habits": sum(1 for h in habits if h.streak > 0),
                    "points": self.storage.get_gamification_state(user_id).total_points,
                },
            )

        return generate_shareable_content(share_type, {})


CAMEL_CASE_KEYS = {
    "dueDate": "due_date",
    "targetFrequency": "target_frequency",
    "dateOfBirth": "date_of_birth",
    "mobileNumber": "mobile_number",
}


def _only(data: Mapping[str, Any], allowed) -> Dict[str, Any]:
    """Keep the editable fields, accepting the web client's camelCase names."""
    normalized = {CAMEL_CASE_KEYS.get(k, k): v for k, v in data.items()}
    return {k: v for k, v in normalized.items() if k in allowed}
