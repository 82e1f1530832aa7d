"""
Environment-driven settings for the portfolio chat backend.

Values come from the process environment (a local ``.env`` is loaded first
via python-dotenv). Build once with ``AppConfig.from_env()`` and pass the
instance down; nothing below reads the environment on its own except the
scenario store's default directory.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


@dataclass
class AppConfig:
    data_dir: str = field(default_factory=lambda: os.path.join(os.getcwd(), "data"))
    default_scenario_id: str = "trending-up"

    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_max_tokens: int = 1000
    openai_timeout_s: float = 60.0

    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key)

    @staticmethod
    def from_env() -> "AppConfig":
        return AppConfig(
            data_dir=os.getenv("SCENARIO_DATA_DIR") or os.path.join(os.getcwd(), "data"),
            default_scenario_id=os.getenv("DEFAULT_SCENARIO_ID") or "trending-up",
            openai_api_key=os.getenv("OPENAI_API_KEY") or os.getenv("VITE_OPENAI_API_KEY") or "",
            openai_model=os.getenv("OPENAI_MODEL") or "gpt-4o",
            openai_max_tokens=int(os.getenv("OPENAI_MAX_TOKENS", "1000")),
            openai_timeout_s=float(os.getenv("OPENAI_TIMEOUT_S", "60")),
            cors_origins=_split_csv(
                os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
            ),
        )
