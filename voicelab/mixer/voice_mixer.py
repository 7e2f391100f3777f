"""
Mix an audio file's active voices (plus optional narration) into one artifact.

The artifact is uploaded to object storage and an audit record of the inputs
is written; if the record cannot be written the upload is removed again.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Protocol, Sequence

from pydub import AudioSegment

from voicelab.database import MixOutputRepository
from voicelab.errors import DecodeError, StorageError, SynthesisError
from voicelab.ingest.utils import decode_audio, new_id
from voicelab.pipeline.dto import AudioFile, MixResult, Voice, VoiceCharacteristics
from voicelab.storage import ObjectStorage

from .config import VoiceTrack
from .mixer import AudioMixer


logger = logging.getLogger("voicelab.mixer")

MIX_BUCKET = "mixed_outputs"


class Synthesizer(Protocol):
    def synthesize_for_voice(
        self, text: str, characteristics: Optional[VoiceCharacteristics] = None
    ) -> bytes:
        ...


def mix_storage_path(audio_id: str, mix_id: str) -> str:
    return f"{MIX_BUCKET}/mixed-{audio_id}-{mix_id}.wav"


class VoiceMixer:
    def __init__(
        self,
        mixer: AudioMixer,
        storage: ObjectStorage,
        mix_repo: MixOutputRepository,
        synthesizer: Optional[Synthesizer] = None,
    ):
        self.mixer = mixer
        self.storage = storage
        self.mix_repo = mix_repo
        self.synthesizer = synthesizer

    def mix(
        self,
        audio_file: AudioFile,
        voices: Sequence[Voice],
        active_map: Dict[str, bool],
        narration_text: Optional[str] = None,
        master_volume: float = 1.0,
    ) -> MixResult:
        if not 0.0 <= float(master_volume) <= 1.0:
            raise ValueError(f"master_volume must be within [0, 1], got {master_volume}")

        active: List[Voice] = [v for v in voices if active_map.get(v.id, False)]
        narration_text = narration_text if narration_text and narration_text.strip() else None
        logger.info(
            "[Audio %s] Mix: %d/%d voices active, narration=%s",
            audio_file.id,
            len(active),
            len(voices),
            narration_text is not None,
        )
        t0 = time.perf_counter()

        narration = None
        if narration_text is not None:
            narration = self._synthesize(audio_file, narration_text, active[0] if active else None)

        source = self._load_source(audio_file) if active else None
        mixed = self.mixer.mix(
            source,
            audio_file.duration,
            [VoiceTrack.from_voice(v) for v in active],
            narration=narration,
            master_volume=master_volume,
        )
        blob = self.mixer.export(mixed)

        mix_id = new_id()
        storage_path = mix_storage_path(audio_file.id, mix_id)
        url = self.storage.put(blob, storage_path, content_type="audio/wav")
        result = MixResult(
            id=mix_id,
            audio_id=audio_file.id,
            url=url,
            blob=blob,
            active_voice_ids=[v.id for v in active],
            narration_text=narration_text,
        )
        try:
            self.mix_repo.add(result, storage_path)
        except StorageError:
            logger.warning("[Audio %s] Mix: audit record failed, removing %s", audio_file.id, storage_path)
            self.storage.delete(storage_path)
            raise

        logger.info(
            "[Audio %s] Mix: %d bytes stored at %s in %.2fs",
            audio_file.id,
            len(blob),
            storage_path,
            time.perf_counter() - t0,
        )
        return result

    def _synthesize(self, audio_file: AudioFile, text: str, voice: Optional[Voice]) -> AudioSegment:
        if self.synthesizer is None:
            raise SynthesisError("Speech synthesis is not configured (ELEVENLABS_API_KEY missing)")
        characteristics = voice.characteristics if voice is not None else None
        t0 = time.perf_counter()
        data = self.synthesizer.synthesize_for_voice(text, characteristics)
        try:
            speech = decode_audio(data, "mp3")
        except DecodeError as exc:
            raise SynthesisError(f"Synthesized speech could not be decoded: {exc}") from exc
        logger.info(
            "[Audio %s] Mix: narration synthesized (%d ms) in %.2fs",
            audio_file.id,
            len(speech),
            time.perf_counter() - t0,
        )
        return speech

    def _load_source(self, audio_file: AudioFile) -> Optional[AudioSegment]:
        data = audio_file.source_bytes
        if data is None and audio_file.storage_path:
            data = self.storage.get(audio_file.storage_path)
        if not data:
            logger.warning("[Audio %s] Mix: no source bytes, voices mix to silence", audio_file.id)
            return None
        return decode_audio(data)
