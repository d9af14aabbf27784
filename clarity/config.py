"""Clarity configuration — loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings

SAMPLE_CONFLICTS_PATH = Path(__file__).resolve().parent / "fixtures" / "sample_conflicts.json"


class Settings(BaseSettings):
    model_config = {"env_prefix": "CLARITY_", "env_file": ".env"}

    # Detection engine snapshot
    conflicts_path: Path = SAMPLE_CONFLICTS_PATH

    # Reviewer name written to the audit export
    operator: str = "reviewer"

    # Verification pacing (seconds)
    verification_min_delay: float = 0.4
    verification_max_delay: float = 1.2
    verification_settle_delay: float = 0.8

    # Server
    cors_origins: list[str] = ["http://localhost:5173"]
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"


settings = Settings()
