"""Environment-based configuration for the R300 face template library."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from FACE_R300_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FACE_R300_",
        case_sensitive=False,
    )

    # Remote R300 service
    api_key: str | None = None
    server_url: str | None = None
    request_timeout: float = Field(default=30.0, gt=0)

    # Matching
    default_threshold: float = Field(default=0.6, ge=0.0, le=1.0)

    # On-device inference
    device: Literal["cpu", "cuda", "openvino"] = "cpu"
    face_recognition_model: str = "auraface_v1"
    accept_insightface_license: bool = False
    models_dir: str = "models"
    template_version: int = 300

    # ONNX Runtime threading
    intra_op_threads: int = Field(default=0, ge=0)
    inter_op_threads: int = Field(default=1, ge=1)

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)

    # Model management
    model_ttl: int = Field(default=300, ge=0)
    gpu_mem_limit: int = Field(default=2_147_483_648, ge=0)


def get_settings() -> Settings:
    """Create and return library settings."""
    return Settings()
