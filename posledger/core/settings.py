from typing import Literal, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr, field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    APP_NAME: str = "POS Ledger API"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["local", "dev", "staging", "prod", "test"] = "local"
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    CORS_ORIGINS: str = "*"      # CSV o '*'
    LOG_LEVEL: str = "INFO"

    # DB
    DATABASE_URL: SecretStr = SecretStr("sqlite+aiosqlite:///./posledger.db")
    DB_SSL: bool = False
    DB_POOL_TIMEOUT_SEC: int = 10
    DB_COMMAND_TIMEOUT_SEC: int = 30

    # -------- validators (presencia, formato) --------
    @field_validator("DATABASE_URL")
    @classmethod
    def _required_secret(cls, v, info):
        if v is None or (hasattr(v, "get_secret_value") and v.get_secret_value() == ""):
            raise ValueError(f"{info.field_name} is required (set it in .env)")
        return v

    @field_validator("API_PREFIX")
    @classmethod
    def _normalize_prefix(cls, v: str) -> str:
        v = (v or "").strip().rstrip("/")
        return v if not v or v.startswith("/") else f"/{v}"

    @field_validator("DB_POOL_TIMEOUT_SEC", "DB_COMMAND_TIMEOUT_SEC")
    @classmethod
    def _timeout_positive(cls, v: int, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @property
    def CORS_ORIGINS_LIST(self) -> List[str]:
        return ["*"] if self.CORS_ORIGINS.strip() == "*" else [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
