"""
Voice-state store.

Holds the editable view of one audio file's voices. Edits apply to the
in-memory view first and are then written through to the repository; a
failed write leaves the view updated but raises `SaveError`, so callers can
tell the user the change is not persisted. Concurrent edits resolve as
last-write-wins per voice id.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Dict, List, Optional

from voicelab.database import VoiceRepository
from voicelab.errors import NotFoundError, SaveError, StorageError
from voicelab.pipeline.dto import Voice, VoiceCharacteristics


logger = logging.getLogger("voicelab.voices")


class VoiceStateStore:
    def __init__(self, repo: VoiceRepository, audio_id: str):
        self.repo = repo
        self.audio_id = audio_id
        self._voices: Dict[str, Voice] = {}
        self._lock = threading.RLock()

    def load(self) -> List[Voice]:
        """Refresh the view from the repository."""
        voices = self.repo.list_for_audio(self.audio_id)
        with self._lock:
            self._voices = {v.id: v for v in voices}
        return list(voices)

    def replace(self, voices: List[Voice]) -> None:
        with self._lock:
            self._voices = {v.id: v for v in voices}

    def __contains__(self, voice_id: str) -> bool:
        with self._lock:
            return voice_id in self._voices

    def voices(self) -> List[Voice]:
        with self._lock:
            return list(self._voices.values())

    def get(self, voice_id: str) -> Voice:
        with self._lock:
            voice = self._voices.get(voice_id)
        if voice is None:
            raise NotFoundError(f"Voice {voice_id} not found for audio {self.audio_id}")
        return voice

    def update(
        self,
        voice_id: str,
        tag: Optional[str] = None,
        characteristics: Optional[VoiceCharacteristics] = None,
        volume: Optional[float] = None,
    ) -> Voice:
        current = self.get(voice_id)
        changes = {}
        if tag is not None:
            tag = tag.strip()
            if not tag:
                raise ValueError("tag must not be empty")
            changes["tag"] = tag
        if characteristics is not None:
            changes["characteristics"] = characteristics
        if volume is not None:
            changes["volume"] = volume
        # replace() re-runs validation in __post_init__.
        updated = replace(current, **changes)

        with self._lock:
            self._voices[voice_id] = updated

        try:
            found = self.repo.update(updated)
        except StorageError as exc:
            logger.exception("[Audio %s] Save failed for voice %s", self.audio_id, voice_id)
            raise SaveError(f"Could not save voice {voice_id}: {exc}") from exc
        if not found:
            with self._lock:
                self._voices.pop(voice_id, None)
            raise NotFoundError(f"Voice {voice_id} no longer exists")
        logger.info("[Audio %s] Saved voice %s", self.audio_id, voice_id)
        return updated

    def delete(self, voice_id: str) -> None:
        self.get(voice_id)
        with self._lock:
            self._voices.pop(voice_id, None)
        try:
            self.repo.delete(voice_id)
        except StorageError as exc:
            logger.exception("[Audio %s] Delete failed for voice %s", self.audio_id, voice_id)
            raise SaveError(f"Could not delete voice {voice_id}: {exc}") from exc
        logger.info("[Audio %s] Deleted voice %s", self.audio_id, voice_id)

    def delete_all(self) -> int:
        with self._lock:
            self._voices = {}
        try:
            count = self.repo.delete_for_audio(self.audio_id)
        except StorageError as exc:
            logger.exception("[Audio %s] Bulk delete failed", self.audio_id)
            raise SaveError(f"Could not delete voices for {self.audio_id}: {exc}") from exc
        logger.info("[Audio %s] Deleted %d voices", self.audio_id, count)
        return count
