"""Dashboard API and logging configuration models."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from storepulse.core.constants import DEFAULT_PAGE_SIZE, DEFAULT_REQUEST_TIMEOUT_SECONDS


class ApiConfig(BaseModel):
    """Configuration for the dashboard HTTP API."""

    base_url: str = Field(default="http://localhost:3000", description="Dashboard server URL")
    timeout_seconds: float = Field(default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0, le=300)
    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra headers (e.g., a session cookie)"
    )
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=100)

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return value.rstrip("/")


class LogConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    format: Literal["json", "console", "both"] = Field(default="console")
    file_path: Path | None = Field(
        default=None, description="Path for log file output (required if format='both')"
    )

    @model_validator(mode="after")
    def _validate_file_path(self) -> LogConfig:
        if self.format == "both" and self.file_path is None:
            raise ValueError("file_path is required when format='both'")
        return self
