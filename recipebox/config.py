from enum import Enum
from typing import List

from fastapi import Request
from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RECIPEBOX_", env_file=".env", extra="ignore")

    env: Env = Env.local
    database_url: str = "sqlite:///./recipebox.db"
    api_prefix: str = "/api"
    jwt_secret: str = "development-secret-change-me-in-production"
    jwt_algorithm: str = "HS256"
    # Observed clients create recipes without a token; keep this on unless
    # the open behaviour is explicitly wanted.
    recipe_writes_require_auth: bool = True
    default_page_size: int = 10
    max_page_size: int = 100
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
