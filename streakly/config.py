"""
Configuration Loader for Streakly

Loads optional user configuration from config.yaml and builds the
GamificationConfig handed to the engine (achievement catalog, level table,
daily challenge templates, action point values).

The app runs without a config file; every setting has a default.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from streakly.achievements import ACHIEVEMENTS, AchievementDefinition, validate_catalog
from streakly.challenges import DAILY_CHALLENGES, ChallengeTemplate
from streakly.levels import USER_LEVELS, Level, validate_levels

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

ACTION_POINTS = {
    "task_completed": 5,
    "habit_completed": 10,
    "streak_milestone_7": 25,
    "streak_milestone_14": 50,
    "streak_milestone_30": 100,
    "perfect_day": 40,
}


@dataclass(frozen=True)
class GamificationConfig:
    """
    Static gamification rules passed to the engine at construction.

    Holds no per-user state; points, unlocks and challenge batches live in
    storage.
    """

    achievements: Sequence[AchievementDefinition] = field(default_factory=lambda: list(ACHIEVEMENTS))
    levels: Sequence[Level] = field(default_factory=lambda: list(USER_LEVELS))
    challenge_templates: Sequence[ChallengeTemplate] = field(
        default_factory=lambda: list(DAILY_CHALLENGES)
    )
    action_points: Dict[str, int] = field(default_factory=lambda: dict(ACTION_POINTS))
    enforce_streak_contiguity: bool = False

    def __post_init__(self):
        validate_catalog(self.achievements)
        validate_levels(self.levels)
        if not self.challenge_templates:
            raise ValueError("At least one daily challenge template is required")

    def points_for_action(self, action: str) -> int:
        """Points awarded for an action, 0 for unknown actions."""
        return self.action_points.get(action, 0)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GamificationConfig":
        """
        Build from the ``gamification`` section of config.yaml.

        Any list left out keeps its default.
        """
        data = data or {}
        kwargs: Dict[str, Any] = {}
        if data.get("achievements"):
            kwargs["achievements"] = [AchievementDefinition.from_dict(a) for a in data["achievements"]]
        if data.get("levels"):
            kwargs["levels"] = [Level.from_dict(level) for level in data["levels"]]
        if data.get("challenges"):
            kwargs["challenge_templates"] = [ChallengeTemplate.from_dict(c) for c in data["challenges"]]
        if data.get("action_points"):
            kwargs["action_points"] = {**ACTION_POINTS, **data["action_points"]}
        if "enforce_streak_contiguity" in data:
            kwargs["enforce_streak_contiguity"] = bool(data["enforce_streak_contiguity"])
        return cls(**kwargs)


class Config:
    """Configuration manager for Streakly."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration from YAML file.

        Args:
            config_path: Path to config.yaml (defaults to STREAKLY_CONFIG or ./config.yaml)
        """
        if config_path is None:
            config_path = Path(os.environ.get("STREAKLY_CONFIG", DEFAULT_CONFIG_PATH))

        self.config_path = Path(config_path)
        self._config = self._load_config()
        self._gamification = GamificationConfig.from_dict(self._config.get("gamification"))

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file, or defaults if it does not exist."""
        if not self.config_path.exists():
            logger.info(f"No config file at {self.config_path}, using defaults")
            return {}

        with open(self.config_path, "r") as f:
            config = yaml.safe_load(f) or {}

        self._validate_config(config)
        return config

    def _validate_config(self, config: Any) -> None:
        """Validate the shape of the configuration."""
        if not isinstance(config, dict):
            raise ValueError("Config file must contain a mapping at the top level")

        for section in ("app", "database", "analytics", "gamification"):
            if section in config and not isinstance(config[section], dict):
                raise ValueError(f"Config section '{section}' must be a mapping")

        window = config.get("analytics", {}).get("default_window_days")
        if window is not None and (not isinstance(window, int) or window < 1):
            raise ValueError("analytics.default_window_days must be a positive integer")

    # ===== APP =====

    @property
    def app_name(self) -> str:
        return self._config.get("app", {}).get("name", "Streakly")

    @property
    def host(self) -> str:
        return self._config.get("app", {}).get("host", "0.0.0.0")

    @property
    def port(self) -> int:
        return int(self._config.get("app", {}).get("port", 5000))

    @property
    def cors_origins(self) -> List[str]:
        """Origins allowed to call the API."""
        return self._config.get("app", {}).get("cors_origins", ["*"])

    # ===== DATABASE =====

    @property
    def database_path(self) -> Path:
        """Get SQLite database path (STREAKLY_DB overrides the file)."""
        env_path = os.environ.get("STREAKLY_DB")
        if env_path:
            return Path(env_path)
        configured = self._config.get("database", {}).get("path")
        if configured:
            return Path(configured)
        return Path(__file__).parent.parent / "streakly.db"

    # ===== ANALYTICS =====

    @property
    def default_window_days(self) -> int:
        return self._config.get("analytics", {}).get("default_window_days", 7)

    # ===== GAMIFICATION =====

    @property
    def gamification(self) -> GamificationConfig:
        return self._gamification

    # ===== UTILITY METHODS =====

    def reload(self) -> None:
        """Reload configuration from file."""
        self._config = self._load_config()
        self._gamification = GamificationConfig.from_dict(self._config.get("gamification"))

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._config)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key.

        Example: config.get('app.port')
        """
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value


# Global config instance
_config: Optional[Config] = None


def get_config(config_path: Optional[Path] = None) -> Config:
    """
    Get global configuration instance.

    Creates the instance on first call (or when an explicit path is given),
    then returns the cached instance.
    """
    global _config
    if _config is None or config_path is not None:
        _config = Config(config_path)
    return _config


def reload_config() -> None:
    """Reload configuration from file."""
    global _config
    if _config is not None:
        _config.reload()
    else:
        _config = Config()
