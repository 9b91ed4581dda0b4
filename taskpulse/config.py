# taskpulse/config.py
from pydantic_settings import BaseSettings
from typing import Optional
from pydantic import Field

class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(7)

    DATABASE_URL: Optional[str] = None
    SQLALCHEMY_DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = Field(False)

    # Day boundaries for analytics (streak, daily series) are taken in this zone.
    TIMEZONE: str = Field("UTC")

    # Requests without a bearer token use the single-device JSON store.
    LOCAL_MODE_ENABLED: bool = Field(True)
    LOCAL_STORE_PATH: str = Field("./local_tasks.json")

    LOG_LEVEL: str = Field("INFO")

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        url = self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL or "sqlite+aiosqlite:///./test.db"
        # Ensure asyncpg is used
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

settings = Settings()
