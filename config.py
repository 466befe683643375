"""
Application configuration.
This module defines the configuration settings for the Flask application, including database connection, secret key,
logging level and reporting windows. It uses environment variables for sensitive information and defaults for
development. In production, make sure to set the appropriate environment variables.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change this in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")

    # Database: SQLite for development (simple file in project folder)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'procureflow.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Reporting windows
    REPORT_TOP_CATEGORIES = 5
    REPORT_TREND_MONTHS = 12

    APP_NAME = "Procurement Requests"


class TestConfig(Config):
    """In-memory database for the test suite."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "DEBUG"
