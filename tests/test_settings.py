"""
Tests for voicelab/settings and context wiring.
"""
import pytest

from voicelab.pipeline.context import build_storage
from voicelab.settings import load_settings
from voicelab.storage import LocalObjectStorage


def test_defaults_live_under_project_data(tmp_path, monkeypatch):
    for name in ("VOICELAB_DATA_DIR", "VOICELAB_DATABASE_URL", "VOICELAB_STORAGE_BACKEND", "VOICELAB_EXPORT_CLIPS"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings(tmp_path)
    assert settings.data_dir == tmp_path / "data"
    assert settings.database_url == f"sqlite:///{tmp_path / 'data' / 'voicelab.db'}"
    assert settings.storage_backend == "local"
    assert settings.export_clips is False


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("VOICELAB_DATA_DIR", str(tmp_path / "elsewhere"))
    monkeypatch.setenv("VOICELAB_EXPORT_CLIPS", "1")
    monkeypatch.setenv("VOICELAB_HTTP_TIMEOUT", "5")
    monkeypatch.setenv("ELEVENLABS_API_KEY", "k")
    settings = load_settings(tmp_path)
    assert settings.data_dir == (tmp_path / "elsewhere").resolve()
    assert settings.export_clips is True
    assert settings.http_timeout_s == 5.0
    assert settings.elevenlabs_api_key == "k"


def test_bad_timeout(tmp_path, monkeypatch):
    monkeypatch.setenv("VOICELAB_HTTP_TIMEOUT", "soon")
    with pytest.raises(ValueError):
        load_settings(tmp_path)


def test_storage_backend_selection(settings):
    assert isinstance(build_storage(settings), LocalObjectStorage)
    settings.storage_backend = "ftp"
    with pytest.raises(ValueError):
        build_storage(settings)
