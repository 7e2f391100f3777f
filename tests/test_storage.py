"""
Tests for voicelab/storage: local backend and the Supabase REST backend.
"""
import pytest

from voicelab.errors import StorageError
from voicelab.storage import SupabaseObjectStorage, split_bucket

from conftest import FakeResponse


def test_split_bucket():
    assert split_bucket("audio_files/a/b.wav") == ("audio_files", "a/b.wav")
    with pytest.raises(StorageError):
        split_bucket("no-bucket")


def test_local_put_get_delete(storage):
    url = storage.put(b"abc", "mixed_outputs/m.wav", content_type="audio/wav")
    assert url == "/storage/mixed_outputs/m.wav"
    assert storage.exists("mixed_outputs/m.wav")
    assert storage.get("mixed_outputs/m.wav") == b"abc"
    assert storage.delete("mixed_outputs/m.wav") is True
    assert storage.delete("mixed_outputs/m.wav") is False
    with pytest.raises(StorageError):
        storage.get("mixed_outputs/m.wav")


def test_local_refuses_escaping_paths(storage):
    with pytest.raises(StorageError):
        storage.put(b"x", "audio_files/../../evil.txt")


class ScriptedSession:
    """Replies by (method, url suffix); records every call."""

    def __init__(self, routes):
        self.headers = {}
        self.routes = routes
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for (m, suffix), response in self.routes.items():
            if m == method and url.endswith(suffix):
                return response
        return FakeResponse(status_code=404, text="not found")


def test_supabase_creates_bucket_once_and_uploads():
    session = ScriptedSession({
        ("POST", "/storage/v1/bucket"): FakeResponse(status_code=200),
        ("POST", "/storage/v1/object/speech/a.mp3"): FakeResponse(status_code=200),
    })
    store = SupabaseObjectStorage("https://proj.supabase.co/", "service-key", timeout_s=3, session=session)

    url = store.put(b"data", "speech/a.mp3", content_type="audio/mpeg")
    store.put(b"data", "speech/a.mp3", content_type="audio/mpeg")

    assert url == "https://proj.supabase.co/storage/v1/object/public/speech/a.mp3"
    bucket_creates = [c for c in session.calls if c[0] == "POST" and c[1].endswith("/storage/v1/bucket")]
    assert len(bucket_creates) == 1
    assert session.headers["Authorization"] == "Bearer service-key"
    assert all(c[2]["timeout"] == 3 for c in session.calls)


def test_supabase_upload_failure_raises():
    session = ScriptedSession({
        ("GET", "/storage/v1/bucket/speech"): FakeResponse(status_code=200),
        ("POST", "/storage/v1/object/speech/a.mp3"): FakeResponse(status_code=500, text="boom"),
    })
    store = SupabaseObjectStorage("https://proj.supabase.co", "k", session=session)
    with pytest.raises(StorageError):
        store.put(b"data", "speech/a.mp3")


def test_supabase_requires_credentials():
    with pytest.raises(StorageError):
        SupabaseObjectStorage("", "")
