"""
Environment configuration.

All API keys and paths are injected through environment variables and read
once into a `Settings` object, which the application root passes on to
`build_context()`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


ENV_DATA_DIR = "VOICELAB_DATA_DIR"
ENV_DATABASE_URL = "VOICELAB_DATABASE_URL"
ENV_STORAGE_BACKEND = "VOICELAB_STORAGE_BACKEND"
ENV_STORAGE_BASE_URL = "VOICELAB_STORAGE_BASE_URL"
ENV_HTTP_TIMEOUT = "VOICELAB_HTTP_TIMEOUT"
ENV_EXPORT_CLIPS = "VOICELAB_EXPORT_CLIPS"


def get_project_root(project_root: Path | None = None) -> Path:
    """Project root: one level above the `voicelab` package unless given."""
    if project_root is None:
        project_root = Path(__file__).resolve().parent.parent
    return project_root


@dataclass
class Settings:
    data_dir: Path
    database_url: str
    storage_backend: str = "local"
    storage_base_url: str = "/storage"

    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    elevenlabs_api_key: Optional[str] = None
    elevenlabs_model_id: str = "eleven_multilingual_v2"

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None

    http_timeout_s: float = 30.0
    export_clips: bool = False

    @property
    def storage_root(self) -> Path:
        return self.data_dir / "storage"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "0").strip().lower() in ("1", "true", "yes", "on")


def load_settings(project_root: Path | None = None) -> Settings:
    """Build `Settings` from the process environment."""
    project_root = get_project_root(project_root)

    env_data = os.environ.get(ENV_DATA_DIR)
    data_dir = Path(env_data).expanduser().resolve() if env_data else project_root / "data"

    database_url = os.environ.get(ENV_DATABASE_URL) or f"sqlite:///{data_dir / 'voicelab.db'}"

    try:
        http_timeout = float(os.environ.get(ENV_HTTP_TIMEOUT, "30"))
    except ValueError:
        raise ValueError(f"{ENV_HTTP_TIMEOUT} must be a number of seconds")

    return Settings(
        data_dir=data_dir,
        database_url=database_url,
        storage_backend=os.environ.get(ENV_STORAGE_BACKEND, "local").strip().lower(),
        storage_base_url=os.environ.get(ENV_STORAGE_BASE_URL, "/storage").rstrip("/"),
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
        elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY"),
        elevenlabs_model_id=os.getenv("ELEVENLABS_MODEL_ID", "eleven_multilingual_v2"),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        openai_base_url=os.getenv("OPENAI_BASE_URL"),
        http_timeout_s=http_timeout,
        export_clips=_env_flag(ENV_EXPORT_CLIPS),
    )
