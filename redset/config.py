"""
config.py — Runtime settings for RedSet.

Values come from the process environment, with a `.env` file in the
working directory loaded first (python-dotenv). Required:

    GEMINI_API_KEY=...          (GOOGLE_API_KEY is accepted as a fallback)

Optional:

    REDSET_TEXT_MODEL=gemini-3-pro-preview
    REDSET_IMAGE_MODEL=gemini-3-pro-image-preview
    REDSET_IMAGE_SIZE=1K                  # 1K | 2K | 4K
    REDSET_MAX_ATTEMPTS=3                 # per-image attempts with continuity
    REDSET_BACKOFF_SECONDS=2.0
    REDSET_PLAN_TEMPERATURE=1.0
    REDSET_PLAN_MAX_TOKENS=8192
    REDSET_OUTPUT_DIR=outputs

The API key is not validated here. GeminiGateway refuses to start without
one, so a missing key fails at construction time rather than on first use.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_TEXT_MODEL = "gemini-3-pro-preview"
DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"

IMAGE_SIZES = ("1K", "2K", "4K")
ASPECT_RATIOS = ("1:1", "2:3", "3:2", "3:4", "4:3", "4:5", "5:4", "9:16", "16:9", "21:9")


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    image_size: str = "1K"
    max_attempts: int = 3
    backoff_seconds: float = 2.0
    plan_temperature: float = 1.0
    plan_max_tokens: int = 8192
    output_dir: Path = Path("outputs")

    def __post_init__(self) -> None:
        if self.image_size not in IMAGE_SIZES:
            raise ValueError(f"image_size must be one of {IMAGE_SIZES}, got {self.image_size!r}")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds cannot be negative")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Build settings from `.env` + environment variables."""
        load_dotenv(env_file)
        env = os.environ
        return cls(
            api_key=env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY") or None,
            text_model=env.get("REDSET_TEXT_MODEL", DEFAULT_TEXT_MODEL),
            image_model=env.get("REDSET_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
            image_size=env.get("REDSET_IMAGE_SIZE", "1K").upper(),
            max_attempts=int(env.get("REDSET_MAX_ATTEMPTS", "3")),
            backoff_seconds=float(env.get("REDSET_BACKOFF_SECONDS", "2.0")),
            plan_temperature=float(env.get("REDSET_PLAN_TEMPERATURE", "1.0")),
            plan_max_tokens=int(env.get("REDSET_PLAN_MAX_TOKENS", "8192")),
            output_dir=Path(env.get("REDSET_OUTPUT_DIR", "outputs")),
        )
