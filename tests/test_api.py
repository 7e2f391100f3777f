"""
HTTP tests for app/main.py through FastAPI's TestClient.
"""
import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from voicelab.errors import OperationInProgressError
from voicelab.pipeline.dto import MixRequest


@pytest.fixture
def client(context):
    return TestClient(create_app(context))


@pytest.fixture
def uploaded(client, wav_bytes):
    resp = client.post("/api/audio", files={"file": ("clip.wav", wav_bytes(30), "audio/wav")})
    assert resp.status_code == 201
    return resp.json()["audio"]


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_home_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Voice Lab" in resp.text


def test_full_scenario(client, uploaded):
    """Upload, analyze, solo one voice at half volume, mix, delete a voice."""
    assert uploaded["duration"] == 30
    assert len(uploaded["waveform"]) == 30

    voices = client.post(f"/api/audio/{uploaded['id']}/analyze").json()["voices"]
    assert 2 <= len(voices) <= 5
    for voice in voices:
        assert 0 <= voice["start_time"] < voice["end_time"] <= 30

    solo = voices[0]
    resp = client.put(f"/api/voices/{solo['id']}", json={"volume": 0.5})
    assert resp.status_code == 200
    assert resp.json()["voice"]["volume"] == 0.5

    active = {v["id"]: v["id"] == solo["id"] for v in voices}
    resp = client.post(f"/api/audio/{uploaded['id']}/mix", json={"active": active})
    assert resp.status_code == 200
    mix = resp.json()["mix"]
    assert mix["active_voice_ids"] == [solo["id"]]
    assert mix["narration_text"] is None

    download = client.get(f"/api/mixes/{mix['id']}/download")
    assert download.status_code == 200
    assert download.content[:4] == b"RIFF"

    assert client.delete(f"/api/voices/{voices[-1]['id']}").status_code == 200
    remaining = client.get(f"/api/audio/{uploaded['id']}/voices").json()["voices"]
    assert len(remaining) == len(voices) - 1


def test_analyze_twice_returns_same_voices(client, uploaded):
    first = client.post(f"/api/audio/{uploaded['id']}/analyze").json()["voices"]
    second = client.post(f"/api/audio/{uploaded['id']}/analyze").json()["voices"]
    assert [v["id"] for v in first] == [v["id"] for v in second]


def test_reanalyze_and_clear(client, uploaded):
    first = client.post(f"/api/audio/{uploaded['id']}/analyze").json()["voices"]
    fresh = client.post(f"/api/audio/{uploaded['id']}/reanalyze").json()["voices"]
    assert not {v["id"] for v in first} & {v["id"] for v in fresh}

    resp = client.delete(f"/api/audio/{uploaded['id']}/voices")
    assert resp.json()["deleted"] == len(fresh)
    assert client.get(f"/api/audio/{uploaded['id']}/voices").json()["voices"] == []


def test_partial_characteristics_update(client, uploaded):
    voice = client.post(f"/api/audio/{uploaded['id']}/analyze").json()["voices"][0]
    resp = client.put(f"/api/voices/{voice['id']}", json={"tag": "Host", "characteristics": {"pitch": 0.9}})
    updated = resp.json()["voice"]
    assert updated["tag"] == "Host"
    assert updated["characteristics"]["pitch"] == 0.9
    assert updated["characteristics"]["tone"] == voice["characteristics"]["tone"]


def test_invalid_characteristic_is_400(client, uploaded):
    voice = client.post(f"/api/audio/{uploaded['id']}/analyze").json()["voices"][0]
    resp = client.put(f"/api/voices/{voice['id']}", json={"characteristics": {"pitch": 2.0}})
    assert resp.status_code == 400


def test_mix_with_narration(client, uploaded, synthesizer):
    voices = client.post(f"/api/audio/{uploaded['id']}/analyze").json()["voices"]
    resp = client.post(
        f"/api/audio/{uploaded['id']}/mix",
        json={"active": {voices[0]["id"]: True}, "narration_text": "Welcome back", "master_volume": 0.8},
    )
    assert resp.json()["mix"]["narration_text"] == "Welcome back"
    assert synthesizer.calls[0][0] == "Welcome back"

    mixes = client.get(f"/api/audio/{uploaded['id']}/mixes").json()["mixes"]
    assert len(mixes) == 1


def test_preview_seeks_into_source(client, uploaded):
    voice = client.post(f"/api/audio/{uploaded['id']}/analyze").json()["voices"][0]
    plan = client.get(f"/api/voices/{voice['id']}/preview").json()
    assert plan["strategy"] == "source_audio"
    assert plan["degraded"] is False
    assert plan["failures"] == []
    assert client.get(plan["url"]).status_code == 200


def test_youtube_ingest(client):
    resp = client.post("/api/audio/youtube", json={"url": "https://youtu.be/dQw4w9WgXcQ"})
    assert resp.status_code == 201
    audio = resp.json()["audio"]
    assert audio["name"] == "Demo clip"
    assert audio["duration"] <= 180
    assert audio["source_type"] == "youtube"


def test_speech_endpoint(client):
    resp = client.post("/api/speech", json={"text": "Hello there", "pitch": 0.2})
    assert resp.status_code == 200
    assert resp.json()["url"].startswith("/storage/speech/")


def test_delete_audio(client, uploaded):
    client.post(f"/api/audio/{uploaded['id']}/analyze")
    assert client.delete(f"/api/audio/{uploaded['id']}").status_code == 200
    assert client.get(f"/api/audio/{uploaded['id']}").status_code == 404


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/audio/missing"),
        ("post", "/api/audio/missing/analyze"),
        ("delete", "/api/voices/missing"),
        ("get", "/api/mixes/missing/download"),
    ],
)
def test_unknown_ids_are_404(client, method, path):
    resp = getattr(client, method)(path)
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"


def test_bad_upload_type_is_400(client):
    resp = client.post("/api/audio", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidSourceError"


def test_bad_youtube_url_is_400(client):
    resp = client.post("/api/audio/youtube", json={"url": "https://example.com/video"})
    assert resp.status_code == 400


def test_conflicting_operation_is_rejected(client, uploaded):
    """Single-flight per audio id."""
    service = client.app.state.service
    with service._exclusive(uploaded["id"], "test"):
        with pytest.raises(OperationInProgressError):
            service.mix(MixRequest(audio_id=uploaded["id"]))
        resp = client.post(f"/api/audio/{uploaded['id']}/analyze")
        assert resp.status_code == 409
    assert client.post(f"/api/audio/{uploaded['id']}/analyze").status_code == 200


def _clip_exists(context, voice_id):
    return context.storage.exists(f"voice_clips/{voice_id}.wav")


def test_exported_clips_follow_voice_lifecycle(client, context, uploaded):
    """Reanalyze, delete and clear remove the clips of the voices they drop."""
    context.analyzer.export_clips = True
    first = client.post(f"/api/audio/{uploaded['id']}/analyze").json()["voices"]
    assert all(_clip_exists(context, v["id"]) for v in first)

    plan = client.get(f"/api/voices/{first[0]['id']}/preview").json()
    assert (plan["strategy"], plan["degraded"]) == ("segment_clip", False)

    fresh = client.post(f"/api/audio/{uploaded['id']}/reanalyze").json()["voices"]
    assert not any(_clip_exists(context, v["id"]) for v in first)
    assert all(_clip_exists(context, v["id"]) for v in fresh)

    assert client.delete(f"/api/voices/{fresh[0]['id']}").status_code == 200
    assert not _clip_exists(context, fresh[0]["id"])
    assert _clip_exists(context, fresh[1]["id"])

    client.delete(f"/api/audio/{uploaded['id']}/voices")
    assert not any(_clip_exists(context, v["id"]) for v in fresh)


def test_voice_view_is_kept_per_audio_file(client, uploaded):
    service = client.app.state.service
    voices = client.post(f"/api/audio/{uploaded['id']}/analyze").json()["voices"]
    store = service._store(uploaded["id"])
    assert service._store(uploaded["id"]) is store

    client.put(f"/api/voices/{voices[0]['id']}", json={"tag": "Host"})
    assert store.get(voices[0]["id"]).tag == "Host"

    client.delete(f"/api/voices/{voices[1]['id']}")
    assert voices[1]["id"] not in store
