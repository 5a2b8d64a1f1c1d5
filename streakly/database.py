"""
Database - SQLite storage for Streakly

Persists tasks, habits and per-user gamification state:

- user_gamification: running point total per user
- user_achievements: unlock records, UNIQUE(user_id, achievement_id)
- daily_challenges: the user's current challenge batch
- daily_snapshots: one row per user per day, for perfect-day counting
- point_awards: ledger of one-off awards, UNIQUE(user_id, award_key)
- activity_feed: recent events shown on the dashboard
- profiles: optional display details per user

Points are only ever credited in the same transaction as the row that
justifies them (an unlock, an award key, a challenge claim), and only when
that row was actually written. Concurrent evaluations for the same user can
therefore compute the same unlock without crediting it twice.
"""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from flask import current_app

from streakly.achievements import AchievementDefinition
from streakly.models import DailyChallenge, Habit, Profile, Task, format_timestamp

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        text TEXT NOT NULL,
        completed INTEGER DEFAULT 0,
        priority TEXT DEFAULT 'medium',
        category TEXT,
        due_date TEXT,
        completed_at TEXT,
        created_at TEXT,
        updated_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS habits (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        streak INTEGER DEFAULT 0,
        completed_today INTEGER DEFAULT 0,
        target_frequency TEXT DEFAULT 'daily',
        category TEXT,
        last_completed TEXT,
        created_at TEXT,
        updated_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_gamification (
        user_id TEXT PRIMARY KEY,
        total_points INTEGER DEFAULT 0,
        updated_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_achievements (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        achievement_id TEXT NOT NULL,
        unlocked_at TEXT NOT NULL,
        points_awarded INTEGER DEFAULT 0,
        UNIQUE(user_id, achievement_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS daily_challenges (
        user_id TEXT NOT NULL,
        challenge_id TEXT NOT NULL,
        title TEXT,
        description TEXT,
        type TEXT NOT NULL,
        target REAL NOT NULL,
        progress REAL DEFAULT 0,
        points INTEGER DEFAULT 0,
        expires_at TEXT NOT NULL,
        completed INTEGER DEFAULT 0,
        claimed INTEGER DEFAULT 0,
        position INTEGER DEFAULT 0,
        PRIMARY KEY (user_id, challenge_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS daily_snapshots (
        user_id TEXT NOT NULL,
        date TEXT NOT NULL,
        habits_total INTEGER DEFAULT 0,
        habits_completed INTEGER DEFAULT 0,
        all_habits_completed INTEGER DEFAULT 0,
        updated_at TEXT,
        PRIMARY KEY (user_id, date)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS point_awards (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        award_key TEXT NOT NULL,
        points INTEGER NOT NULL,
        awarded_at TEXT NOT NULL,
        UNIQUE(user_id, award_key)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS activity_feed (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        type TEXT NOT NULL,
        message TEXT NOT NULL,
        icon TEXT NOT NULL,
        created_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS profiles (
        user_id TEXT PRIMARY KEY,
        username TEXT NOT NULL,
        email TEXT,
        date_of_birth TEXT,
        mobile_number TEXT,
        created_at TEXT,
        updated_at TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_habits_user ON habits(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_activity_user ON activity_feed(user_id, created_at)",
]


class StorageError(Exception):
    """Raised when the database is unavailable or a query fails."""


@dataclass
class GamificationState:
    """Persisted gamification state for one user."""

    total_points: int = 0
    unlocked_achievement_ids: frozenset = field(default_factory=frozenset)
    active_challenges: List[DailyChallenge] = field(default_factory=list)
    perfect_days: int = 0


def new_id() -> str:
    return str(uuid.uuid4())


class Storage:
    """SQLite-backed storage for tasks, habits and gamification state."""

    def __init__(self, db_path):
        self.db_path = Path(db_path)

    def connect(self) -> sqlite3.Connection:
        """
        Create a database connection with Row factory.

        Uses a 30-second timeout to ride out concurrent writers.
        """
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
        except sqlite3.Error as e:
            raise StorageError(f"Could not open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run a block in one transaction.

        Commits on success, rolls back on error and always closes the
        connection. SQLite errors surface as StorageError.
        """
        conn = self.connect()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise StorageError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        """
        Create tables if they don't exist.

        Uses WAL (Write-Ahead Logging) mode so readers don't block on writers.
        """
        conn = self.connect()
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            for statement in SCHEMA:
                conn.execute(statement)
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Could not initialize database: {e}") from e
        finally:
            conn.close()
        logger.info(f"Database ready at {self.db_path}")

    # ===== TASKS =====

    def list_tasks(self, user_id: str) -> List[Task]:
        with self.transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM tasks WHERE user_id = ? ORDER BY created_at", (user_id,)
            ).fetchall()
        return [Task.from_dict(dict(row)) for row in rows]

    def get_task(self, user_id: str, task_id: str) -> Optional[Task]:
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
            ).fetchone()
        return Task.from_dict(dict(row)) if row else None

    def create_task(self, user_id: str, task: Task) -> Task:
        now = datetime.now().isoformat()
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO tasks (id, user_id, text, completed, priority, category,
                                   due_date, completed_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id,
                    user_id,
                    task.text,
                    int(task.completed),
                    task.priority,
                    task.category,
                    format_timestamp(task.due_date),
                    format_timestamp(task.completed_at),
                    format_timestamp(task.created_at) or now,
                    now,
                ),
            )
        return task

    def save_task(self, user_id: str, task: Task) -> bool:
        """Overwrite a task's mutable fields. Returns False if it does not exist."""
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE tasks
                SET text = ?, completed = ?, priority = ?, category = ?,
                    due_date = ?, completed_at = ?, updated_at = ?
                WHERE id = ? AND user_id = ?
                """,
                (
                    task.text,
                    int(task.completed),
                    task.priority,
                    task.category,
                    format_timestamp(task.due_date),
                    format_timestamp(task.completed_at),
                    datetime.now().isoformat(),
                    task.id,
                    user_id,
                ),
            )
        return cursor.rowcount > 0

    def delete_task(self, user_id: str, task_id: str) -> bool:
        with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id)
            )
        return cursor.rowcount > 0

    # ===== HABITS =====

    def list_habits(self, user_id: str) -> List[Habit]:
        with self.transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM habits WHERE user_id = ? ORDER BY created_at", (user_id,)
            ).fetchall()
        return [Habit.from_dict(dict(row)) for row in rows]

    def get_habit(self, user_id: str, habit_id: str) -> Optional[Habit]:
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT * FROM habits WHERE id = ? AND user_id = ?", (habit_id, user_id)
            ).fetchone()
        return Habit.from_dict(dict(row)) if row else None

    def create_habit(self, user_id: str, habit: Habit) -> Habit:
        now = datetime.now().isoformat()
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO habits (id, user_id, name, streak, completed_today, target_frequency,
                                    category, last_completed, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    habit.id,
                    user_id,
                    habit.name,
                    habit.streak,
                    int(habit.completed_today),
                    habit.target_frequency,
                    habit.category,
                    format_timestamp(habit.last_completed),
                    format_timestamp(habit.created_at) or now,
                    now,
                ),
            )
        return habit

    def save_habit(self, user_id: str, habit: Habit) -> bool:
        """Overwrite a habit's mutable fields. Returns False if it does not exist."""
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE habits
                SET name = ?, streak = ?, completed_today = ?, target_frequency = ?,
                    category = ?, last_completed = ?, updated_at = ?
                WHERE id = ? AND user_id = ?
                """,
                (
                    habit.name,
                    habit.streak,
                    int(habit.completed_today),
                    habit.target_frequency,
                    habit.category,
                    format_timestamp(habit.last_completed),
                    datetime.now().isoformat(),
                    habit.id,
                    user_id,
                ),
            )
        return cursor.rowcount > 0

    def delete_habit(self, user_id: str, habit_id: str) -> bool:
        with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM habits WHERE id = ? AND user_id = ?", (habit_id, user_id)
            )
        return cursor.rowcount > 0

    # ===== GAMIFICATION STATE =====

    def get_gamification_state(self, user_id: str) -> GamificationState:
        """Load points, unlock ids, the stored challenge batch and perfect-day count."""
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT total_points FROM user_gamification WHERE user_id = ?", (user_id,)
            ).fetchone()
            unlocked = conn.execute(
                "SELECT achievement_id FROM user_achievements WHERE user_id = ?", (user_id,)
            ).fetchall()
            challenges = conn.execute(
                "SELECT * FROM daily_challenges WHERE user_id = ? ORDER BY position", (user_id,)
            ).fetchall()
            perfect_days = conn.execute(
                "SELECT COUNT(*) FROM daily_snapshots WHERE user_id = ? AND all_habits_completed = 1",
                (user_id,),
            ).fetchone()[0]

        return GamificationState(
            total_points=row["total_points"] if row else 0,
            unlocked_achievement_ids=frozenset(r["achievement_id"] for r in unlocked),
            active_challenges=[_challenge_from_row(r) for r in challenges],
            perfect_days=perfect_days,
        )

    def list_unlocked_achievements(self, user_id: str) -> Dict[str, str]:
        """Map of achievement id to unlock timestamp."""
        with self.transaction() as conn:
            rows = conn.execute(
                "SELECT achievement_id, unlocked_at FROM user_achievements WHERE user_id = ?",
                (user_id,),
            ).fetchall()
        return {r["achievement_id"]: r["unlocked_at"] for r in rows}

    def record_unlocks(
        self, user_id: str, achievements: Sequence[AchievementDefinition], now: datetime
    ) -> Tuple[List[AchievementDefinition], int]:
        """
        Insert unlock records and credit their points.

        Achievements already recorded (e.g. by a concurrent request) are
        skipped and not credited.

        Returns:
            (achievements actually recorded, points credited)
        """
        recorded = []
        with self.transaction() as conn:
            for achievement in achievements:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO user_achievements
                    (user_id, achievement_id, unlocked_at, points_awarded)
                    VALUES (?, ?, ?, ?)
                    """,
                    (user_id, achievement.id, now.isoformat(), achievement.points),
                )
                if cursor.rowcount == 1:
                    recorded.append(achievement)
            credited = sum(a.points for a in recorded)
            if credited:
                _add_points(conn, user_id, credited, now)
        return recorded, credited

    def award_points(self, user_id: str, award_key: str, points: int, now: datetime) -> bool:
        """
        Credit a one-off award identified by award_key.

        Returns:
            True if credited, False if the key was already awarded
        """
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT OR IGNORE INTO point_awards (user_id, award_key, points, awarded_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, award_key, points, now.isoformat()),
            )
            if cursor.rowcount != 1:
                return False
            if points:
                _add_points(conn, user_id, points, now)
        logger.debug(f"Awarded {points} points to {user_id} for {award_key}")
        return True

    def save_challenge_batch(
        self, user_id: str, batch: Sequence[DailyChallenge], replace: bool = False
    ) -> None:
        """
        Store the challenge batch.

        With replace, the previous batch is discarded. Otherwise progress is
        updated in place and completed/claimed flags are never cleared.
        """
        with self.transaction() as conn:
            if replace:
                conn.execute("DELETE FROM daily_challenges WHERE user_id = ?", (user_id,))
            for position, challenge in enumerate(batch):
                conn.execute(
                    """
                    INSERT INTO daily_challenges
                    (user_id, challenge_id, title, description, type, target, progress,
                     points, expires_at, completed, claimed, position)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(user_id, challenge_id) DO UPDATE SET
                        progress = excluded.progress,
                        completed = MAX(completed, excluded.completed),
                        claimed = MAX(claimed, excluded.claimed)
                    """,
                    (
                        user_id,
                        challenge.id,
                        challenge.title,
                        challenge.description,
                        challenge.type,
                        challenge.target,
                        challenge.progress,
                        challenge.points,
                        challenge.expires_at.isoformat(),
                        int(challenge.completed),
                        int(challenge.claimed),
                        position,
                    ),
                )

    def claim_challenge(self, user_id: str, challenge: DailyChallenge, now: datetime) -> bool:
        """
        Mark a completed challenge claimed and credit its points.

        The update only matches an unclaimed, completed row of the same
        batch, so a second claim credits nothing.

        Returns:
            True if points were credited
        """
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE daily_challenges SET claimed = 1
                WHERE user_id = ? AND challenge_id = ? AND expires_at = ?
                  AND completed = 1 AND claimed = 0
                """,
                (user_id, challenge.id, challenge.expires_at.isoformat()),
            )
            if cursor.rowcount != 1:
                return False
            _add_points(conn, user_id, challenge.points, now)
        return True

    def record_daily_snapshot(
        self, user_id: str, day: date, habits_total: int, habits_completed: int, now: datetime
    ) -> None:
        """Upsert today's habit completion snapshot (latest state wins)."""
        all_completed = int(habits_total > 0 and habits_completed == habits_total)
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO daily_snapshots
                (user_id, date, habits_total, habits_completed, all_habits_completed, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, date) DO UPDATE SET
                    habits_total = excluded.habits_total,
                    habits_completed = excluded.habits_completed,
                    all_habits_completed = excluded.all_habits_completed,
                    updated_at = excluded.updated_at
                """,
                (user_id, day.isoformat(), habits_total, habits_completed, all_completed, now.isoformat()),
            )

    # ===== PROFILES =====

    def get_profile(self, user_id: str) -> Optional[Profile]:
        with self.transaction() as conn:
            row = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
        return Profile.from_dict(dict(row)) if row else None

    def save_profile(self, profile: Profile, now: datetime) -> Profile:
        """Insert or overwrite a profile, keeping the first created_at."""
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO profiles
                (user_id, username, email, date_of_birth, mobile_number, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    username = excluded.username,
                    email = excluded.email,
                    date_of_birth = excluded.date_of_birth,
                    mobile_number = excluded.mobile_number,
                    updated_at = excluded.updated_at
                """,
                (
                    profile.user_id,
                    profile.username,
                    profile.email,
                    profile.date_of_birth,
                    profile.mobile_number,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            row = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (profile.user_id,)).fetchone()
        return Profile.from_dict(dict(row))

    # ===== ACTIVITY FEED =====

    def create_activity(self, user_id: str, type: str, message: str, icon: str, now: datetime) -> Dict:
        activity = {
            "id": new_id(),
            "user_id": user_id,
            "type": type,
            "message": message,
            "icon": icon,
            "created_at": now.isoformat(),
        }
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO activity_feed (id, user_id, type, message, icon, created_at)
                VALUES (:id, :user_id, :type, :message, :icon, :created_at)
                """,
                activity,
            )
        return activity

    def list_activities(self, user_id: str, limit: int = 50) -> List[Dict]:
        with self.transaction() as conn:
            rows = conn.execute(
                """
                SELECT id, type, message, icon, created_at FROM activity_feed
                WHERE user_id = ? ORDER BY created_at DESC LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
        return [dict(row) for row in rows]


def _add_points(conn: sqlite3.Connection, user_id: str, points: int, now: datetime) -> None:
    conn.execute(
        """
        INSERT INTO user_gamification (user_id, total_points, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(user_id) DO UPDATE SET
            total_points = total_points + excluded.total_points,
            updated_at = excluded.updated_at
        """,
        (user_id, points, now.isoformat()),
    )


def _challenge_from_row(row: sqlite3.Row) -> DailyChallenge:
    return DailyChallenge.from_dict(
        {
            "id": row["challenge_id"],
            "title": row["title"],
            "description": row["description"],
            "type": row["type"],
            "target": row["target"],
            "progress": row["progress"],
            "points": row["points"],
            "expires_at": row["expires_at"],
            "completed": row["completed"],
            "claimed": row["claimed"],
        }
    )


def get_storage() -> Storage:
    """Storage bound to the current Flask app."""
    return current_app.extensions["streakly.storage"]
