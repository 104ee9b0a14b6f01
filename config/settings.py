from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

from dotenv import load_dotenv

from transcript.models import ExportOptions


@dataclass(frozen=True)
class Settings:
    project_root: Path
    output_dir: Path
    timezone: str
    timestamp_format: str
    show_timestamp: bool
    show_hidden_messages: bool
    hidden_message_depth: int
    show_model_name: bool

    def export_options(self) -> ExportOptions:
        return ExportOptions(
            show_timestamp=self.show_timestamp,
            show_hidden_messages=self.show_hidden_messages,
            hidden_message_depth=self.hidden_message_depth,
            show_model_name=self.show_model_name,
        )


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    project_root = Path(__file__).resolve().parents[1]
    load_dotenv(project_root / ".env")

    output_dir = os.getenv("AIEXPORT_OUTPUT_DIR", "").strip()

    return Settings(
        project_root=project_root,
        output_dir=Path(output_dir) if output_dir else project_root / "data" / "exports",
        timezone=os.getenv("AIEXPORT_TIMEZONE", "UTC").strip() or "UTC",
        timestamp_format=os.getenv("AIEXPORT_TIMESTAMP_FORMAT", "%Y-%m-%d %H:%M:%S"),
        show_timestamp=_env_bool("AIEXPORT_SHOW_TIMESTAMP", False),
        show_hidden_messages=_env_bool("AIEXPORT_SHOW_HIDDEN_MESSAGES", False),
        hidden_message_depth=_env_int("AIEXPORT_HIDDEN_MESSAGE_DEPTH", 1),
        show_model_name=_env_bool("AIEXPORT_SHOW_MODEL_NAME", False),
    )


def ensure_directories(settings: Settings) -> None:
    settings.output_dir.mkdir(parents=True, exist_ok=True)
