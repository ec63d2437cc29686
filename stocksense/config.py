import os
from functools import lru_cache

from pydantic_settings import BaseSettings

from stocksense.simulation import constants as C

# Heroku sets DATABASE_URL and PORT without a prefix -- map them to
# the STOCKSENSE_-prefixed names that pydantic-settings expects.
if "DATABASE_URL" in os.environ and "STOCKSENSE_DATABASE_URL" not in os.environ:
    _url = os.environ["DATABASE_URL"]
    if _url.startswith("postgres://"):
        _url = _url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif _url.startswith("postgresql://"):
        _url = _url.replace("postgresql://", "postgresql+asyncpg://", 1)
    os.environ["STOCKSENSE_DATABASE_URL"] = _url

if "PORT" in os.environ and "STOCKSENSE_PORT" not in os.environ:
    os.environ["STOCKSENSE_PORT"] = os.environ["PORT"]


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./stocksense.db"
    SQL_ECHO: bool = False
    JWT_SECRET: str = "dev-secret-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 1440
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # Simulation calendar
    STARTING_CASH: float = C.STARTING_CASH
    MAX_SIMULATION_YEARS: int = C.MAX_SIMULATION_YEARS
    YEAR_DURATION_SECONDS: int = C.YEAR_DURATION_SECONDS

    # Market loop timers
    INTRADAY_TICK_SECONDS: float = C.INTRADAY_TICK_SECONDS
    YEAR_CHECK_SECONDS: float = C.YEAR_CHECK_SECONDS
    SEED_CATALOG: bool = True

    model_config = {"env_prefix": "STOCKSENSE_"}


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
