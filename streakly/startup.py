"""
Startup validation and health checks for Streakly.

Validates configuration, the database and the gamification rule tables
before the application starts.
"""

import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from streakly.logging_config import get_logger

logger = get_logger(__name__)


class ValidationResult:
    """Result of a validation check."""

    def __init__(
        self,
        name: str,
        passed: bool,
        message: str,
        severity: str = "error",  # error, warning, info
        fix_hint: Optional[str] = None,
    ):
        self.name = name
        self.passed = passed
        self.message = message
        self.severity = severity
        self.fix_hint = fix_hint

    def __str__(self) -> str:
        status = "PASS" if self.passed else self.severity.upper()
        return f"[{status}] {self.name}: {self.message}"


def validate_configuration(config_path: Optional[Path] = None) -> List[ValidationResult]:
    """
    Load config.yaml and the gamification tables it defines.

    Returns:
        List of validation results
    """
    from streakly.config import get_config

    results = []
    try:
        config = get_config(config_path)
    except (ValueError, OSError) as e:
        return [
            ValidationResult(
                name="Configuration",
                passed=False,
                message=f"Invalid configuration: {e}",
                severity="error",
                fix_hint="Compare config.yaml with config.example.yaml",
            )
        ]

    if config.config_path.exists():
        message = f"Loaded {config.config_path}"
    else:
        message = "No config.yaml, using defaults"
    results.append(ValidationResult(name="Configuration", passed=True, message=message, severity="info"))

    gamification = config.gamification
    results.append(
        ValidationResult(
            name="Gamification Rules",
            passed=True,
            message=(
                f"{len(gamification.achievements)} achievements, "
                f"{len(gamification.levels)} levels, "
                f"{len(gamification.challenge_templates)} daily challenges"
            ),
            severity="info",
        )
    )

    flask_env = os.environ.get("FLASK_ENV", "development")
    results.append(
        ValidationResult(
            name="Flask Environment",
            passed=True,
            message=f"Running in {flask_env} mode",
            severity="info",
        )
    )
    return results


def validate_database(db_path: Optional[Path] = None) -> List[ValidationResult]:
    """
    Check the database directory is writable and the schema can be created.

    Returns:
        List of validation results
    """
    from streakly.config import get_config
    from streakly.database import Storage, StorageError

    if db_path is None:
        db_path = get_config().database_path
    db_dir = Path(db_path).parent

    if not db_dir.exists():
        return [
            ValidationResult(
                name="Database Directory",
                passed=False,
                message=f"Database directory does not exist: {db_dir}",
                severity="error",
                fix_hint="Create the directory or set STREAKLY_DB",
            )
        ]
    if not os.access(db_dir, os.W_OK):
        return [
            ValidationResult(
                name="Database Directory",
                passed=False,
                message=f"No write permission for database directory: {db_dir}",
                severity="error",
                fix_hint="Fix directory permissions: chmod 755",
            )
        ]

    try:
        Storage(db_path).init_db()
    except StorageError as e:
        return [
            ValidationResult(
                name="Database Connection",
                passed=False,
                message=f"Database error: {e}",
                severity="error",
                fix_hint="Check database file permissions and integrity",
            )
        ]

    return [
        ValidationResult(
            name="Database Connection",
            passed=True,
            message=f"Database initialized at {db_path}",
            severity="info",
        )
    ]


def run_startup_validation(
    strict: bool = False, log_results: bool = True, config_path: Optional[Path] = None
) -> Tuple[bool, List[ValidationResult]]:
    """
    Run all startup validations.

    Args:
        strict: If True, treat warnings as errors
        log_results: If True, log validation results
        config_path: Optional path to config.yaml

    Returns:
        Tuple of (all_passed, results)
    """
    all_results = validate_configuration(config_path)
    if all(r.passed for r in all_results):
        all_results.extend(validate_database())

    if log_results:
        logger.info("=" * 60)
        logger.info("STARTUP VALIDATION RESULTS")
        logger.info("=" * 60)

        for result in all_results:
            if result.passed or result.severity == "info":
                logger.info(str(result))
            elif result.severity == "error":
                logger.error(str(result))
                if result.fix_hint:
                    logger.error(f"  Hint: {result.fix_hint}")
            else:
                logger.warning(str(result))
                if result.fix_hint:
                    logger.warning(f"  Hint: {result.fix_hint}")

        logger.info("=" * 60)

    errors = [r for r in all_results if not r.passed and r.severity == "error"]
    warnings = [r for r in all_results if not r.passed and r.severity == "warning"]

    if errors:
        logger.error(f"Startup validation failed with {len(errors)} error(s)")
        return False, all_results

    if strict and warnings:
        logger.error(f"Startup validation failed with {len(warnings)} warning(s) (strict mode)")
        return False, all_results

    logger.info("Startup validation passed")
    return True, all_results


def get_health_status(storage) -> Dict:
    """
    Get current health status for the health check endpoint.

    Args:
        storage: Storage instance bound to the app

    Returns:
        Health status dictionary
    """
    status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "checks": {},
    }

    try:
        with storage.transaction() as conn:
            conn.execute("SELECT 1").fetchone()
        status["checks"]["database"] = {"status": "healthy"}
    except Exception as e:
        logger.error(f"Health check database failure: {e}")
        status["status"] = "unhealthy"
        status["checks"]["database"] = {"status": "unhealthy", "error": str(e)}

    try:
        total, used, free = shutil.disk_usage(Path(storage.db_path).parent)
        free_gb = free / (1024**3)
        status["checks"]["disk"] = {
            "status": "healthy" if free_gb > 1 else "warning",
            "free_gb": round(free_gb, 2),
        }
        if free_gb < 0.5:
            status["status"] = "unhealthy"
    except OSError as e:
        status["checks"]["disk"] = {"status": "unknown", "error": str(e)}

    return status
