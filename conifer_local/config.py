# conifer_local/config.py
from __future__ import annotations
from pathlib import Path
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- Project ---
    project_id: str = "local"
    environment: str = "local"                 # reported for pod indexes and collections

    # --- Data plane ---
    grpc_enabled: bool = True                  # start a VectorService server per index
    grpc_host: str = "localhost"
    grpc_workers: int = 8
    max_top_k: int = Field(default=10000, ge=1)

    # --- Auth (optional) ---
    api_key: Optional[str] = None              # when set, every call must present it

    # --- Logging ---
    log_level: str = "INFO"
    log_file: Optional[str] = None             # e.g. logs/conifer_local.log

    model_config = SettingsConfigDict(
        env_prefix="CONIFER_LOCAL_",
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR")
        return v
