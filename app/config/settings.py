# app/config/settings.py
# Application configuration read from the environment

import os
from dotenv import load_dotenv

load_dotenv()


class AppConfig:
    """Application configuration"""

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mini_jira.db")
    DB_SSLMODE = os.getenv("DB_SSLMODE")  # e.g. "require" on hosted PostgreSQL
    AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "true").lower() == "true"

    # Auth
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 7 * 24 * 60))  # 7 days
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 10))

    # Server
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3001"))
    RELOAD = os.getenv("RELOAD", "true").lower() == "true"
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Pagination
    TASKS_DEFAULT_LIMIT = 20
    TASKS_MAX_LIMIT = 100
    TEAMS_DEFAULT_LIMIT = 10
    TEAMS_MAX_LIMIT = 50
    IMPORTANT_TASKS_DEFAULT_LIMIT = 5
    IMPORTANT_TASKS_MAX_LIMIT = 20

    # Teams
    JOIN_CODE_LENGTH = 10
    RECENT_ACTIVITY_DAYS = 7

    @classmethod
    def get_cors_origins(cls) -> list:
        """Origins allowed to call the API from a browser"""
        return [cls.FRONTEND_URL, "http://localhost:3000", "http://127.0.0.1:3000"]

    @classmethod
    def get_connect_args(cls) -> dict:
        """Driver connect args for the configured database"""
        if cls.DATABASE_URL.startswith("sqlite"):
            return {"check_same_thread": False}
        if cls.DB_SSLMODE:
            return {"sslmode": cls.DB_SSLMODE}
        return {}


DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"
DEFAULT_SUCCESS_MESSAGE = "Operation completed successfully"
