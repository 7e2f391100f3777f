"""Central service orchestrating the Voice Lab modules.

`VoiceLabService` runs each user action end to end: ingest, analyze or
reanalyze, voice edits, preview resolution and mixing. Actions that replace
or consume the voice set of one audio file (analyze, reanalyze, clear, mix,
delete) are single-flight per audio id; a second concurrent call fails fast
with `OperationInProgressError` instead of queueing.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set, Tuple

from voicelab.errors import NotFoundError, OperationInProgressError, StorageError, SynthesisError
from voicelab.ingest import RemoteSource, UploadSource
from voicelab.playback import PreviewPlan, resolve_preview
from voicelab.speech import safe_filename
from voicelab.voices import VoiceStateStore

from .context import AppContext
from .dto import AudioFile, MixRequest, MixResult, Voice, VoiceCharacteristics


SPEECH_BUCKET = "speech"


class VoiceLabService:
    """Orchestrates ingestion, analysis, voice edits and mixing."""

    def __init__(self, context: AppContext):
        self.context = context
        self.logger = logging.getLogger("voicelab.pipeline")
        self._lock = threading.Lock()
        self._in_flight: Set[str] = set()
        self._stores: Dict[str, VoiceStateStore] = {}

    @contextmanager
    def _exclusive(self, audio_id: str, action: str) -> Iterator[None]:
        with self._lock:
            if audio_id in self._in_flight:
                raise OperationInProgressError(
                    f"Another operation is already running for audio {audio_id}; {action} rejected"
                )
            self._in_flight.add(audio_id)
        try:
            yield
        finally:
            with self._lock:
                self._in_flight.discard(audio_id)

    # ---------------------
    # Audio files
    # ---------------------
    def ingest_upload(self, filename: str, data: bytes) -> AudioFile:
        return self.context.ingestor.ingest(UploadSource(filename=filename, data=data))

    def ingest_remote(self, url: str) -> AudioFile:
        return self.context.ingestor.ingest(RemoteSource(url=url))

    def get_audio(self, audio_id: str) -> AudioFile:
        audio_file = self.context.audio_repo.get(audio_id)
        if audio_file is None:
            raise NotFoundError(f"Audio file {audio_id} not found")
        return audio_file

    def delete_audio(self, audio_id: str) -> None:
        audio_file = self.get_audio(audio_id)
        with self._exclusive(audio_id, "delete"):
            voices = self.context.voice_repo.list_for_audio(audio_id)
            self.context.audio_repo.delete(audio_id)
            with self._lock:
                self._stores.pop(audio_id, None)
            # Records are gone; leftover objects are only logged.
            self.context.analyzer.remove_clips(voices)
            if audio_file.storage_path:
                try:
                    self.context.storage.delete(audio_file.storage_path)
                except StorageError as exc:
                    self.logger.warning(
                        "[Audio %s] Could not remove %s: %s", audio_id, audio_file.storage_path, exc
                    )
        self.logger.info("[Audio %s] Deleted with %d voices", audio_id, len(voices))

    # ---------------------
    # Analysis
    # ---------------------
    def analyze(self, audio_id: str) -> List[Voice]:
        audio_file = self.get_audio(audio_id)
        with self._exclusive(audio_id, "analyze"):
            voices = self.context.analyzer.analyze(audio_file)
            self._store(audio_id).replace(voices)
            return voices

    def reanalyze(self, audio_id: str) -> List[Voice]:
        audio_file = self.get_audio(audio_id)
        with self._exclusive(audio_id, "reanalyze"):
            voices = self.context.analyzer.reanalyze(audio_file)
            self._store(audio_id).replace(voices)
            return voices

    # ---------------------
    # Voices
    # ---------------------
    def _store(self, audio_id: str) -> VoiceStateStore:
        """The editable voice view of one audio file, kept across requests."""
        with self._lock:
            store = self._stores.get(audio_id)
            if store is None:
                store = VoiceStateStore(self.context.voice_repo, audio_id)
                store.load()
                self._stores[audio_id] = store
        return store

    def list_voices(self, audio_id: str) -> List[Voice]:
        self.get_audio(audio_id)
        return self._store(audio_id).load()

    def clear_voices(self, audio_id: str) -> int:
        self.get_audio(audio_id)
        with self._exclusive(audio_id, "clear"):
            store = self._store(audio_id)
            voices = store.load()
            deleted = store.delete_all()
            self.context.analyzer.remove_clips(voices)
            return deleted

    def _store_for_voice(self, voice_id: str) -> VoiceStateStore:
        voice = self.context.voice_repo.get(voice_id)
        if voice is None:
            raise NotFoundError(f"Voice {voice_id} not found")
        store = self._store(voice.audio_id)
        if voice_id not in store:
            store.load()
        return store

    def update_voice(
        self,
        voice_id: str,
        tag: Optional[str] = None,
        characteristics: Optional[Dict[str, float]] = None,
        volume: Optional[float] = None,
    ) -> Voice:
        """Apply a partial edit; characteristics missing from the dict keep their value."""
        store = self._store_for_voice(voice_id)
        merged = None
        if characteristics is not None:
            current = store.get(voice_id).characteristics.to_dict()
            current.update({k: v for k, v in characteristics.items() if k in current})
            merged = VoiceCharacteristics.from_dict(current)
        return store.update(voice_id, tag=tag, characteristics=merged, volume=volume)

    def delete_voice(self, voice_id: str) -> None:
        store = self._store_for_voice(voice_id)
        voice = store.get(voice_id)
        store.delete(voice_id)
        self.context.analyzer.remove_clips([voice])

    def preview(self, voice_id: str) -> PreviewPlan:
        voice = self.context.voice_repo.get(voice_id)
        if voice is None:
            raise NotFoundError(f"Voice {voice_id} not found")
        return resolve_preview(voice, self.get_audio(voice.audio_id))

    # ---------------------
    # Mixing
    # ---------------------
    def mix(self, request: MixRequest) -> MixResult:
        audio_file = self.get_audio(request.audio_id)
        with self._exclusive(request.audio_id, "mix"):
            voices = self.context.voice_repo.list_for_audio(request.audio_id)
            try:
                return self.context.voice_mixer.mix(
                    audio_file,
                    voices,
                    request.active,
                    narration_text=request.narration_text,
                    master_volume=request.master_volume,
                )
            except SynthesisError:
                self.logger.exception("[Audio %s] Mix aborted: synthesis failed", request.audio_id)
                raise

    def list_mixes(self, audio_id: str) -> List[MixResult]:
        self.get_audio(audio_id)
        return self.context.mix_repo.list_for_audio(audio_id)

    def download_mix(self, mix_id: str) -> Tuple[bytes, MixResult]:
        result = self.context.mix_repo.get(mix_id)
        storage_path = self.context.mix_repo.get_storage_path(mix_id)
        if result is None or storage_path is None:
            raise NotFoundError(f"Mix {mix_id} not found")
        return self.context.storage.get(storage_path), result

    # ---------------------
    # Standalone speech
    # ---------------------
    def synthesize_speech(self, text: str, pitch: Optional[float] = None) -> Dict[str, object]:
        synthesizer = self.context.synthesizer
        if synthesizer is None:
            raise SynthesisError("Speech synthesis is not configured (ELEVENLABS_API_KEY missing)")
        if not text or not text.strip():
            raise ValueError("text must not be empty")
        characteristics = VoiceCharacteristics(pitch=pitch) if pitch is not None else None

        t0 = time.perf_counter()
        data = synthesizer.synthesize_for_voice(text, characteristics)
        path = f"{SPEECH_BUCKET}/{safe_filename(prefix='speech', suffix='.mp3')}"
        url = self.context.storage.put(data, path, content_type="audio/mpeg")
        self.logger.info("Speech: %d chars -> %s in %.2fs", len(text), path, time.perf_counter() - t0)
        return {"url": url, "path": path, "size_bytes": len(data)}
