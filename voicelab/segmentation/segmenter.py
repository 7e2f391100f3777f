"""
Voice segmentation.

`VoiceSegmenter` is a placeholder: it splits the timeline into equal slots
with a small overlap and draws random characteristics. `VoiceAnalyzer` wraps
any segmenter with the persistence policy (idempotent analyze, destructive
reanalyze) and optional per-segment clip export.
"""

from __future__ import annotations

import io
import logging
import random
import time
from typing import List, Optional

from voicelab.database import VoiceRepository
from voicelab.errors import AnalysisError, DecodeError, StorageError, VoiceLabError
from voicelab.ingest.utils import decode_audio, new_id
from voicelab.pipeline.dto import PALETTE, AudioFile, Voice, VoiceCharacteristics
from voicelab.storage import ObjectStorage

from .config import SegmenterConfig


logger = logging.getLogger("voicelab.segmentation")

CLIP_BUCKET = "voice_clips"


def clip_path(voice_id: str) -> str:
    return f"{CLIP_BUCKET}/{voice_id}.wav"


class VoiceSegmenter:
    def __init__(self, config: SegmenterConfig | None = None):
        self.config = config or SegmenterConfig()
        self.rng = random.Random(self.config.seed)

    def segment(self, audio_file: AudioFile) -> List[Voice]:
        duration = float(audio_file.duration)
        if duration <= 0:
            raise AnalysisError(f"Audio file {audio_file.id} has no duration to segment")

        count = self.rng.randint(self.config.min_voices, self.config.max_voices)
        slot = duration / (count + 1)
        voices: List[Voice] = []
        for i in range(count):
            start = round(i * slot, 3)
            end = round(min(start + slot + self.config.overlap_s, duration), 3)
            voices.append(
                Voice(
                    id=new_id(),
                    audio_id=audio_file.id,
                    start_time=start,
                    end_time=end,
                    tag=f"Voice {i + 1}",
                    color=PALETTE[i % len(PALETTE)],
                    volume=1.0,
                    characteristics=VoiceCharacteristics(
                        pitch=round(self.rng.random(), 4),
                        tone=round(self.rng.random(), 4),
                        speed=round(self.rng.random(), 4),
                        clarity=round(self.rng.random(), 4),
                    ),
                    audio_url=audio_file.url,
                )
            )
        for voice in voices:
            voice.check_bounds(duration)
        return voices


class VoiceAnalyzer:
    """Segment an audio file once and keep the result."""

    def __init__(
        self,
        segmenter: VoiceSegmenter,
        voice_repo: VoiceRepository,
        storage: Optional[ObjectStorage] = None,
        export_clips: bool = False,
    ):
        self.segmenter = segmenter
        self.voice_repo = voice_repo
        self.storage = storage
        self.export_clips = export_clips

    def analyze(self, audio_file: AudioFile) -> List[Voice]:
        existing = self.voice_repo.list_for_audio(audio_file.id)
        if existing:
            logger.info("[Audio %s] Analysis: reusing %d stored voices", audio_file.id, len(existing))
            return existing
        return self._generate(audio_file)

    def reanalyze(self, audio_file: AudioFile) -> List[Voice]:
        previous = self.voice_repo.list_for_audio(audio_file.id)
        removed = self.voice_repo.delete_for_audio(audio_file.id)
        logger.info("[Audio %s] Reanalysis: removed %d voices", audio_file.id, removed)
        self.remove_clips(previous)
        return self._generate(audio_file)

    def remove_clips(self, voices: List[Voice]) -> int:
        """Delete exported clips of voices whose rows are gone; failures are logged."""
        if self.storage is None:
            return 0
        removed = 0
        for voice in voices:
            path = clip_path(voice.id)
            if not (voice.audio_url or "").endswith(path):
                continue
            try:
                removed += bool(self.storage.delete(path))
            except StorageError as exc:
                logger.warning("[Audio %s] Could not remove clip %s: %s", voice.audio_id, path, exc)
        return removed

    def _generate(self, audio_file: AudioFile) -> List[Voice]:
        t0 = time.perf_counter()
        try:
            voices = self.segmenter.segment(audio_file)
        except VoiceLabError:
            raise
        except Exception as exc:
            logger.exception("[Audio %s] Analysis failed", audio_file.id)
            raise AnalysisError(f"Segmentation failed for {audio_file.id}: {exc}") from exc

        if not voices:
            raise AnalysisError(f"Segmentation produced no voices for {audio_file.id}")
        for voice in voices:
            if not voice.audio_url:
                voice.audio_url = audio_file.url

        if self.export_clips and self.storage is not None:
            self._export_clips(audio_file, voices)

        self.voice_repo.add_many(voices)
        logger.info(
            "[Audio %s] Analysis: %d voices in %.2fs",
            audio_file.id,
            len(voices),
            time.perf_counter() - t0,
        )
        return voices

    def _export_clips(self, audio_file: AudioFile, voices: List[Voice]) -> None:
        data = audio_file.source_bytes
        if data is None and audio_file.storage_path:
            try:
                data = self.storage.get(audio_file.storage_path)
            except StorageError as exc:
                logger.warning("[Audio %s] Clip export skipped: %s", audio_file.id, exc)
                return
        if not data:
            return
        try:
            source = decode_audio(data)
        except DecodeError as exc:
            logger.warning("[Audio %s] Clip export skipped: %s", audio_file.id, exc)
            return

        for voice in voices:
            clip = source[int(voice.start_time * 1000):int(voice.end_time * 1000)]
            buf = io.BytesIO()
            clip.export(buf, format="wav")
            try:
                voice.audio_url = self.storage.put(buf.getvalue(), clip_path(voice.id), content_type="audio/wav")
            except StorageError as exc:
                # Preview falls back to the parent audio.
                logger.warning("[Audio %s] Clip upload failed for %s: %s", audio_file.id, voice.id, exc)
