from functools import lru_cache

from dotenv import load_dotenv
from fastapi import Depends, Request
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL
from typing_extensions import Annotated

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(frozen=True, extra="ignore")

    port: int = 3000
    team_name: str = "unknown"
    service_name: str = "api"
    environment: str = "local"
    app_version: str = "2.0.0"
    log_level: str = "INFO"

    # PostgreSQL; DATABASE_URL wins over the individual parts
    database_url: str | None = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "hackathon"
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_pool_size: int = 20
    db_pool_timeout: float = 2.0  # seconds to wait for a pooled connection

    # Redis; an empty host disables the cache
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_timeout: float = 2.0
    cache_default_ttl: int = 3600
    task_list_limit: int = 100

    @property
    def async_database_url(self) -> str | URL:
        """Connection URL with the asyncpg driver."""
        if self.database_url:
            url = self.database_url
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )

    @property
    def cache_configured(self) -> bool:
        return bool(self.redis_host)


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was built with."""
    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
