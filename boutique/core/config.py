from decimal import Decimal
from typing import List
from pydantic_settings import BaseSettings
from pydantic import model_validator
from urllib.parse import quote_plus
import os


class Settings(BaseSettings):
    APP_ENV: str = "local"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # Database URL - can be provided directly or constructed from components
    DATABASE_URL: str | None = None

    # Individual database components (for constructing a PostgreSQL DATABASE_URL)
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = ""

    # "sql" persists through SQLAlchemy, "memory" keeps everything in process
    STORAGE_BACKEND: str = "sql"
    DEMO_DATA: bool = False

    # Auth
    SECRET_KEY: str = "change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Opening balances at account inception
    INITIAL_BANK_BALANCE: Decimal = Decimal("0")
    INITIAL_CASH_IN_HAND: Decimal = Decimal("0")

    # Amount validation policy for payments, expenses and fund transactions
    REQUIRE_POSITIVE_AMOUNTS: bool = True
    ALLOW_OVERPAYMENT: bool = True

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    class Config:
        env_file = ".env" if os.getenv("APP_ENV", "local") == "local" else ".env.prod"
        env_file_encoding = "utf-8"

    @model_validator(mode='after')
    def construct_database_url(self):
        """Construct DATABASE_URL from components if not provided directly."""
        if not self.DATABASE_URL:
            if self.DB_NAME:
                # URL encode password to handle special characters
                password_part = f":{quote_plus(self.DB_PASSWORD)}" if self.DB_PASSWORD else ""
                self.DATABASE_URL = f"postgresql://{self.DB_USER}{password_part}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            else:
                self.DATABASE_URL = "sqlite:///./boutique.db"

        if self.STORAGE_BACKEND not in ("sql", "memory"):
            raise ValueError("STORAGE_BACKEND must be 'sql' or 'memory'")
        return self

    @property
    def database_url(self) -> str:
        """Get DATABASE_URL as a guaranteed string."""
        assert self.DATABASE_URL is not None, "DATABASE_URL must be set"
        return self.DATABASE_URL


settings = Settings()
