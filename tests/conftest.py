"""
Shared fixtures: temporary SQLite database and local storage, generated WAV
clips, and fakes for the speech and HTTP collaborators.
"""
import io
import random

import pytest
import requests
from pydub.generators import Sine

from voicelab.database import AudioFileRepository, Database, MixOutputRepository, VoiceRepository
from voicelab.ingest import AudioIngestor, YouTubeResolver
from voicelab.pipeline.context import build_context
from voicelab.segmentation import SegmenterConfig
from voicelab.settings import Settings
from voicelab.storage import LocalObjectStorage


def make_wav(seconds=30.0, freq=440, volume=-6.0):
    """Mono 16-bit sine tone exported as WAV bytes."""
    seg = Sine(freq).to_audio_segment(duration=seconds * 1000, volume=volume)
    buf = io.BytesIO()
    seg.export(buf, format="wav")
    return buf.getvalue()


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, content=b"", text=""):
        self.status_code = status_code
        self._json = json_data
        self.content = content
        self.text = text

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class FakeSession:
    """Stands in for requests.Session; replies with queued responses or raises."""

    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def _reply(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kwargs):
        return self._reply("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._reply("POST", url, **kwargs)

    def request(self, method, url, **kwargs):
        return self._reply(method, url, **kwargs)


class FakeSynthesizer:
    """Returns a short WAV tone and records what it was asked to say."""

    def __init__(self, seconds=2.0):
        self.seconds = seconds
        self.calls = []

    def synthesize_for_voice(self, text, characteristics=None):
        self.calls.append((text, characteristics))
        return make_wav(self.seconds, freq=220)


@pytest.fixture
def wav_bytes():
    return make_wav


@pytest.fixture
def settings(tmp_path):
    data_dir = tmp_path / "data"
    return Settings(data_dir=data_dir, database_url=f"sqlite:///{tmp_path / 'test.db'}")


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'repo.db'}")
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def storage(tmp_path):
    return LocalObjectStorage(tmp_path / "storage", base_url="/storage")


@pytest.fixture
def audio_repo(database):
    return AudioFileRepository(database)


@pytest.fixture
def voice_repo(database):
    return VoiceRepository(database)


@pytest.fixture
def mix_repo(database):
    return MixOutputRepository(database)


@pytest.fixture
def offline_resolver():
    """Resolver whose oEmbed lookup always fails, so defaults apply."""
    return YouTubeResolver(session=FakeSession(error=requests.ConnectionError("offline")))


@pytest.fixture
def ingestor(storage, audio_repo, offline_resolver):
    return AudioIngestor(storage, audio_repo, resolver=offline_resolver, rng=random.Random(0))


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def context(settings, synthesizer):
    resolver = YouTubeResolver(session=FakeSession(response=FakeResponse(json_data={"title": "Demo clip"})))
    ctx = build_context(
        settings,
        segmenter_config=SegmenterConfig(seed=3),
        synthesizer=synthesizer,
        resolver=resolver,
    )
    yield ctx
    ctx.close()
