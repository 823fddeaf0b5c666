from decimal import Decimal
from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")

    PROJECT_NAME: str = "Fleet Delivery Service"
    API_PREFIX: str = "/api"

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # database
    SQLITE_DATABASE_URI: str = "sqlite:///./fleet.db"

    # cache: memory:// or redis://host:port/db
    CACHE_URL: str = "memory://"
    CACHE_TTL_SECONDS: int = Field(default=300, ge=1, description="Expiry of every cache entry")
    CACHE_SWEEP_ENABLED: bool = True
    CACHE_SWEEP_INTERVAL_SECONDS: int = Field(default=60, ge=1)

    # admission rules
    TRUCK_MONTHLY_LIMIT: int = 4
    DRIVER_MONTHLY_LIMIT: int = 2
    RESTRICTED_REGION: str = "NORDESTE"
    HIGH_VALUE_THRESHOLD: Decimal = Decimal("30000")

    # per-entity admission locks
    ADMISSION_LOCK_TIMEOUT: float = Field(default=5.0, gt=0, description="Seconds per acquire attempt")
    ADMISSION_LOCK_RETRIES: int = Field(default=3, ge=1)


settings = Settings()
logger.info(f"Loaded settings: API_PREFIX={settings.API_PREFIX}, CACHE_URL={settings.CACHE_URL}")
