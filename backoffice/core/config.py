from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    PROJECT_NAME: str = "Back-Office API"
    API_V1_STR: str = "/api/v1"

    # Database
    DATABASE_URL: str = "postgresql://postgres@localhost:5432/backoffice"

    UPLOAD_DIR: str = "uploads"
    LOG_LEVEL: str = "INFO"

    # Security
    SECRET_KEY: str = "SECRET_KEY_CHANGE_ME_IN_PRODUCTION"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

    # HR
    DEFAULT_BREAK_MINUTES: int = 60
    PAYROLL_WORKING_DAYS: int = 26

    # Prospects
    REINJECT_RDV_DAYS: int = 7
    REINJECT_INJECTION_DAYS: int = 3

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


settings = Settings()
