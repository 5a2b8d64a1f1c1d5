#!/usr/bin/env python3
"""
Streakly - Main Entry Point

Uses the application factory pattern via streakly.create_app().

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development (default), production, testing
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (optional)
    STREAKLY_CONFIG: Path to config.yaml (optional)
    STREAKLY_DB: Path to the SQLite database (optional)
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

APP_DIR = Path(__file__).parent

# Load environment variables from .env file
load_dotenv(APP_DIR / ".env")

from streakly.logging_config import get_logger, setup_logging  # noqa: E402

# Setup logging based on environment
flask_env = os.environ.get("FLASK_ENV", "development")
log_level = os.environ.get("LOG_LEVEL")
json_logs = flask_env == "production"

setup_logging(level=log_level, json_logs=json_logs)
logger = get_logger(__name__)


def main():
    """Main entry point for Streakly."""
    logger.info("=" * 60)
    logger.info("Streakly - Starting Up")
    logger.info("=" * 60)

    from streakly.startup import run_startup_validation

    logger.info("Running startup validation...")
    validation_passed, _ = run_startup_validation(strict=False, log_results=True)
    if not validation_passed:
        logger.error("Startup validation failed. Please fix the errors above.")
        sys.exit(1)

    from streakly import create_app
    from streakly.config import get_config

    app = create_app()
    config = get_config()

    logger.info("")
    logger.info("=" * 60)
    logger.info(f"  {config.app_name}")
    logger.info("=" * 60)
    logger.info(f"  Environment: {flask_env}")
    logger.info(f"  Configuration: {config.config_path}")
    logger.info(f"  Database: {config.database_path}")
    logger.info(f"  API: http://localhost:{config.port}/api")
    logger.info(f"  Health Check: http://localhost:{config.port}/api/health")
    logger.info("=" * 60)

    debug_mode = flask_env != "production"
    app.run(debug=debug_mode, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
