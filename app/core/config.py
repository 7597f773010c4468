from typing import Any, List, Optional
from urllib.parse import quote_plus

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Parques Admin"
    VERSION: str = "1.4.0"
    API_V1_PREFIX: str = "/api/v1"

    # --- Environment & Debug ---
    ENVIRONMENT: str = "local"
    DEBUG: bool = False  # Default to False for security
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # --- CORS ---
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=list,
        validate_default=True,
        description="List of allowed CORS origins. Configure in .env",
    )

    # --- Database Config ---
    DB_HOST: Optional[str] = None
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_PORT: Optional[str] = "5432"
    DB_NAME: Optional[str] = "parques"
    DB_SCHEMA: str = "public"
    TEST_DATABASE_URL: Optional[str] = None

    # --- Connection Pool ---
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_PRE_PING: bool = True

    # --- URL Maestra ---
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)

    # --- Park detail / dashboard ---
    PARK_DETAIL_ACTIVITY_LIMIT: int = Field(default=10, ge=1)
    DASHBOARD_INCIDENT_WINDOW_DAYS: int = Field(default=30, ge=1)

    # --- Latency SLO ---
    SLOW_REQUEST_THRESHOLD_SECONDS: float = 0.8

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def default_allowed_origins(
        cls, v: Optional[List[str]], info: ValidationInfo
    ) -> Optional[List[str]]:
        env = info.data.get("ENVIRONMENT") or "local"
        if env != "production":
            if v is None:
                return ["http://localhost:5173", "http://localhost:5000"]
            if isinstance(v, str) and v.strip() in ("", "[]"):
                return ["http://localhost:5173", "http://localhost:5000"]
            if isinstance(v, list) and len(v) == 0:
                return ["http://localhost:5173", "http://localhost:5000"]
        return v

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> Any:
        # Si ya viene una URL completa, usarla directamente
        if isinstance(v, str) and v:
            return v

        values = info.data
        user = values.get("DB_USER") or "postgres"
        # URL-encode el password para manejar caracteres especiales (@, #, !, etc.)
        password = quote_plus(values.get("DB_PASSWORD") or "")
        host = values.get("DB_HOST") or "localhost"
        port = values.get("DB_PORT") or "5432"
        db = values.get("DB_NAME") or "parques"

        return f"postgresql://{user}:{password}@{host}:{port}/{db}"

    @field_validator("DB_SCHEMA", mode="after")
    @classmethod
    def validate_db_schema(cls, v: str) -> str:
        if not v or not v.replace("_", "").isalnum():
            raise ValueError("DB_SCHEMA must be a plain identifier")
        return v


settings = Settings()
