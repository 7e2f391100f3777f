"""
Tests for voicelab/voices: write-through edits, optimistic view and deletes.
"""
import pytest

from voicelab.errors import NotFoundError, SaveError, StorageError
from voicelab.pipeline.dto import AudioFile, VoiceCharacteristics
from voicelab.segmentation import SegmenterConfig, VoiceSegmenter
from voicelab.voices import VoiceStateStore


@pytest.fixture
def stored_voices(audio_repo, voice_repo):
    audio = AudioFile(id="audio-1", name="clip.wav", url="/storage/audio_files/clip.wav", duration=20)
    audio_repo.add(audio)
    voices = VoiceSegmenter(SegmenterConfig(min_voices=3, max_voices=3, seed=9)).segment(audio)
    voice_repo.add_many(voices)
    return voices


@pytest.fixture
def store(voice_repo, stored_voices):
    store = VoiceStateStore(voice_repo, "audio-1")
    store.load()
    return store


def test_update_is_visible_on_refetch(store, voice_repo, stored_voices):
    """Tag, characteristics and volume written through to the repository."""
    target = stored_voices[0]
    chars = VoiceCharacteristics(pitch=0.9, tone=0.1, speed=0.0, clarity=1.0)
    store.update(target.id, tag="Narrator", characteristics=chars, volume=0.5)

    fetched = voice_repo.get(target.id)
    assert fetched.tag == "Narrator"
    assert fetched.characteristics == chars
    assert fetched.volume == 0.5
    assert store.get(target.id).tag == "Narrator"


def test_update_rejects_out_of_range_volume(store, stored_voices):
    with pytest.raises(ValueError):
        store.update(stored_voices[0].id, volume=1.5)


def test_update_unknown_voice(store):
    with pytest.raises(NotFoundError):
        store.update("missing", tag="x")


class FailingWrites:
    """Voice repository whose writes fail."""

    def __init__(self, inner):
        self.inner = inner

    def list_for_audio(self, audio_id):
        return self.inner.list_for_audio(audio_id)

    def update(self, voice):
        raise StorageError("connection lost")

    def delete(self, voice_id):
        raise StorageError("connection lost")

    def delete_for_audio(self, audio_id):
        raise StorageError("connection lost")


def test_failed_save_keeps_optimistic_view(voice_repo, stored_voices):
    """The view shows the edit while the caller learns it was not persisted."""
    store = VoiceStateStore(FailingWrites(voice_repo), "audio-1")
    store.load()
    target = stored_voices[1]

    with pytest.raises(SaveError):
        store.update(target.id, tag="Edited")
    assert store.get(target.id).tag == "Edited"
    assert voice_repo.get(target.id).tag == target.tag


def test_failed_delete_is_reported(voice_repo, stored_voices):
    store = VoiceStateStore(FailingWrites(voice_repo), "audio-1")
    store.load()
    with pytest.raises(SaveError):
        store.delete(stored_voices[0].id)
    assert len(store.voices()) == 2
    assert voice_repo.get(stored_voices[0].id) is not None


def test_delete_one(store, voice_repo, stored_voices):
    store.delete(stored_voices[2].id)
    assert len(store.voices()) == 2
    assert len(voice_repo.list_for_audio("audio-1")) == 2


def test_delete_all_reports_count(store, voice_repo):
    assert store.delete_all() == 3
    assert store.voices() == []
    assert voice_repo.list_for_audio("audio-1") == []


def test_last_write_wins(voice_repo, stored_voices):
    a = VoiceStateStore(voice_repo, "audio-1")
    b = VoiceStateStore(voice_repo, "audio-1")
    a.load()
    b.load()
    target = stored_voices[0].id
    a.update(target, tag="First")
    b.update(target, tag="Second")
    assert voice_repo.get(target).tag == "Second"
