"""
Tests for voicelab/speech: preset selection and error mapping.
"""
import pytest
import requests

from voicelab.errors import SynthesisError
from voicelab.pipeline.dto import VoiceCharacteristics
from voicelab.settings import Settings
from voicelab.speech import (
    VOICE_PRESETS,
    ElevenLabsClient,
    ElevenLabsConfig,
    build_elevenlabs_client,
    select_voice_preset,
)

from conftest import FakeResponse, FakeSession


@pytest.mark.parametrize(
    "pitch,preset",
    [(1.0, "high"), (0.71, "high"), (0.7, "medium"), (0.41, "medium"), (0.4, "low"), (0.0, "low")],
)
def test_pitch_bands(pitch, preset):
    assert select_voice_preset(VoiceCharacteristics(pitch=pitch)) == preset


def test_no_characteristics_is_default():
    assert select_voice_preset(None) == "default"


def test_synthesize_posts_to_preset_voice():
    session = FakeSession(response=FakeResponse(content=b"ID3audio"))
    client = ElevenLabsClient(ElevenLabsConfig(api_key="k", timeout_s=7), session=session)

    audio = client.synthesize_for_voice("Hello", VoiceCharacteristics(pitch=0.9))

    assert audio == b"ID3audio"
    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url.endswith(f"/v1/text-to-speech/{VOICE_PRESETS['high']}")
    assert kwargs["timeout"] == 7
    assert kwargs["json"]["voice_settings"]["stability"] == 0.5
    assert kwargs["json"]["voice_settings"]["similarity_boost"] == 0.75
    assert session.headers["xi-api-key"] == "k"


def test_http_error_becomes_synthesis_error():
    session = FakeSession(response=FakeResponse(status_code=401, text="unauthorized"))
    client = ElevenLabsClient(ElevenLabsConfig(api_key="k"), session=session)
    with pytest.raises(SynthesisError):
        client.synthesize("Hello")


def test_transport_error_becomes_synthesis_error():
    session = FakeSession(error=requests.ConnectionError("down"))
    client = ElevenLabsClient(ElevenLabsConfig(api_key="k"), session=session)
    with pytest.raises(SynthesisError):
        client.synthesize("Hello")


def test_empty_text_rejected():
    client = ElevenLabsClient(ElevenLabsConfig(api_key="k"), session=FakeSession())
    with pytest.raises(SynthesisError):
        client.synthesize("   ")


def test_client_disabled_without_key(tmp_path):
    settings = Settings(data_dir=tmp_path, database_url="sqlite://")
    assert build_elevenlabs_client(settings) is None
    settings.elevenlabs_api_key = "k"
    assert isinstance(build_elevenlabs_client(settings), ElevenLabsClient)
