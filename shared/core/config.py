import os
from typing import List, Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: List[str] = [
        "http://localhost:8080",
        "http://127.0.0.1:8002",
    ]

    # Identity resolution
    JWT_SECRET: Optional[str] = os.getenv("JWT_SECRET")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", 1440))  # 24 hours default
    IDENTITY_MODE: str = os.getenv("IDENTITY_MODE", "local")
    AUTH_SERVICE_URL: str = os.getenv("AUTH_SERVICE_URL", "http://localhost:8001")
    AUTH_SERVICE_TIMEOUT: float = float(os.getenv("AUTH_SERVICE_TIMEOUT", 5))

    # Database
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    DB_USER: Optional[str] = os.getenv("DB_USER")
    DB_PASS: Optional[str] = os.getenv("DB_PASS")
    DB_HOST: Optional[str] = os.getenv("DB_HOST")
    DB_PORT: Optional[str] = os.getenv("DB_PORT")
    PROPERTY_DB_NAME: Optional[str] = os.getenv("PROPERTY_DB_NAME")

    # Tenancy rules
    STRICT_INTEGRITY: bool = os.getenv("STRICT_INTEGRITY", "False").lower() == "true"
    RENEWAL_TERM_DAYS_PER_MONTH: int = int(os.getenv("RENEWAL_TERM_DAYS_PER_MONTH", 30))
    RENEWAL_OFFER_VALID_DAYS: Optional[int] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()


def build_database_url(conf: Settings) -> str:
    if conf.DATABASE_URL:
        return conf.DATABASE_URL
    return (
        f"postgresql+psycopg2://{conf.DB_USER}:{conf.DB_PASS}@{conf.DB_HOST}:{conf.DB_PORT}/{conf.PROPERTY_DB_NAME}"
    )


PROPERTY_DATABASE_URL = build_database_url(settings)
