from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Global application-level configuration.

    This class is the single source of truth for:
    - environment selection
    - logging behavior
    - reproducibility defaults
    - host-side timing and session limits
    """

    model_config = SettingsConfigDict(
        env_prefix="ARCADE_",
        env_file=".env",
        extra="ignore",
    )

    # ---- Environment -------------------------------------------------

    env: Literal["local", "staging", "prod"] = "local"

    # ---- Logging -----------------------------------------------------

    log_level: str = "INFO"

    # ---- Reproducibility ---------------------------------------------

    # None means every session draws fresh entropy
    default_seed: Optional[int] = Field(
        default=None,
        description="Default RNG seed for runner spawns",
    )

    # ---- Recording ---------------------------------------------------

    record_dir: Optional[Path] = Field(
        default=None,
        description="Directory for per-session events.jsonl recordings (disabled when unset)",
    )

    # ---- Host timing -------------------------------------------------

    runner_frame_interval_ms: float = Field(
        default=16.0,
        gt=0,
        description="Virtual frame period used to drive the runner",
    )

    max_live_sessions: int = Field(
        default=256,
        ge=1,
        description="Upper bound of sessions kept alive by the API process",
    )


# Singleton settings object
settings = AppSettings()
