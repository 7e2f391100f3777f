"""
Repositories translating between ORM rows and pipeline DTOs.

Every backend failure surfaces as StorageError; callers decide whether that
means a failed ingest, a failed save or a failed mix.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from voicelab.errors import StorageError
from voicelab.pipeline.dto import AudioFile, MixResult, Voice, VoiceCharacteristics

from .connection import Database
from .models import AudioFileRecord, MixedOutputRecord, VoiceRecord, utcnow


logger = logging.getLogger("voicelab.database")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _audio_from_record(rec: AudioFileRecord) -> AudioFile:
    return AudioFile(
        id=rec.id,
        name=rec.name,
        url=rec.url,
        duration=int(rec.duration),
        waveform=list(rec.waveform or []),
        source_type=rec.source_type,
        source_url=rec.source_url,
        storage_path=rec.storage_path,
        created_at=_iso(rec.created_at),
    )


def _voice_from_record(rec: VoiceRecord) -> Voice:
    return Voice(
        id=rec.id,
        audio_id=rec.audio_id,
        start_time=float(rec.start_time),
        end_time=float(rec.end_time),
        tag=rec.tag,
        color=rec.color,
        volume=float(rec.volume),
        characteristics=VoiceCharacteristics.from_dict(rec.characteristics),
        audio_url=rec.audio_url,
    )


def _mix_from_record(rec: MixedOutputRecord) -> MixResult:
    return MixResult(
        id=rec.id,
        audio_id=rec.audio_id,
        url=rec.output_url,
        blob=b"",
        active_voice_ids=list(rec.voices or []),
        narration_text=rec.tts_text,
        content_type=rec.content_type,
        created_at=_iso(rec.created_at),
    )


class AudioFileRepository:
    def __init__(self, database: Database):
        self.database = database

    def add(self, audio_file: AudioFile) -> AudioFile:
        if not audio_file.url:
            raise StorageError("Refusing to store an audio file without a url")
        try:
            with self.database.session() as session:
                rec = AudioFileRecord(
                    id=audio_file.id,
                    name=audio_file.name,
                    url=audio_file.url,
                    storage_path=audio_file.storage_path,
                    source_type=audio_file.source_type,
                    source_url=audio_file.source_url,
                    duration=int(audio_file.duration),
                    waveform=list(audio_file.waveform),
                )
                session.add(rec)
                session.flush()
                audio_file.created_at = _iso(rec.created_at)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to store audio file {audio_file.id}: {exc}") from exc
        return audio_file

    def get(self, audio_id: str) -> Optional[AudioFile]:
        try:
            with self.database.session() as session:
                rec = session.get(AudioFileRecord, audio_id)
                return _audio_from_record(rec) if rec else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load audio file {audio_id}: {exc}") from exc

    def delete(self, audio_id: str) -> bool:
        """Delete an audio file together with its voices."""
        try:
            with self.database.session() as session:
                session.execute(delete(VoiceRecord).where(VoiceRecord.audio_id == audio_id))
                result = session.execute(delete(AudioFileRecord).where(AudioFileRecord.id == audio_id))
                return result.rowcount > 0
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to delete audio file {audio_id}: {exc}") from exc


class VoiceRepository:
    def __init__(self, database: Database):
        self.database = database

    def add_many(self, voices: Iterable[Voice]) -> List[Voice]:
        voices = list(voices)
        try:
            with self.database.session() as session:
                for position, voice in enumerate(voices):
                    session.add(VoiceRecord(
                        id=voice.id,
                        audio_id=voice.audio_id,
                        tag=voice.tag,
                        start_time=voice.start_time,
                        end_time=voice.end_time,
                        color=voice.color,
                        volume=voice.volume,
                        audio_url=voice.audio_url,
                        characteristics=voice.characteristics.to_dict(),
                        position=position,
                    ))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to store {len(voices)} voices: {exc}") from exc
        logger.info("Stored %d voices", len(voices))
        return voices

    def list_for_audio(self, audio_id: str) -> List[Voice]:
        try:
            with self.database.session() as session:
                rows = session.execute(
                    select(VoiceRecord)
                    .where(VoiceRecord.audio_id == audio_id)
                    .order_by(VoiceRecord.position, VoiceRecord.start_time)
                ).scalars().all()
                return [_voice_from_record(r) for r in rows]
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load voices for {audio_id}: {exc}") from exc

    def count_for_audio(self, audio_id: str) -> int:
        try:
            with self.database.session() as session:
                return int(session.execute(
                    select(func.count()).select_from(VoiceRecord).where(VoiceRecord.audio_id == audio_id)
                ).scalar_one())
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to count voices for {audio_id}: {exc}") from exc

    def get(self, voice_id: str) -> Optional[Voice]:
        try:
            with self.database.session() as session:
                rec = session.get(VoiceRecord, voice_id)
                return _voice_from_record(rec) if rec else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load voice {voice_id}: {exc}") from exc

    def update(self, voice: Voice) -> bool:
        """Write tag, characteristics and volume. False if the row is gone."""
        try:
            with self.database.session() as session:
                rec = session.get(VoiceRecord, voice.id)
                if rec is None:
                    return False
                rec.tag = voice.tag
                rec.characteristics = voice.characteristics.to_dict()
                rec.volume = voice.volume
                rec.updated_at = utcnow()
                return True
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to update voice {voice.id}: {exc}") from exc

    def delete(self, voice_id: str) -> bool:
        try:
            with self.database.session() as session:
                result = session.execute(delete(VoiceRecord).where(VoiceRecord.id == voice_id))
                return result.rowcount > 0
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to delete voice {voice_id}: {exc}") from exc

    def delete_for_audio(self, audio_id: str) -> int:
        try:
            with self.database.session() as session:
                result = session.execute(delete(VoiceRecord).where(VoiceRecord.audio_id == audio_id))
                return int(result.rowcount or 0)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to delete voices for {audio_id}: {exc}") from exc


class MixOutputRepository:
    def __init__(self, database: Database):
        self.database = database

    def add(self, result: MixResult, storage_path: str) -> MixResult:
        try:
            with self.database.session() as session:
                rec = MixedOutputRecord(
                    id=result.id,
                    audio_id=result.audio_id,
                    voices=list(result.active_voice_ids),
                    output_url=result.url,
                    storage_path=storage_path,
                    content_type=result.content_type,
                    tts_text=result.narration_text,
                )
                session.add(rec)
                session.flush()
                result.created_at = _iso(rec.created_at)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to store mix record {result.id}: {exc}") from exc
        return result

    def get(self, mix_id: str) -> Optional[MixResult]:
        try:
            with self.database.session() as session:
                rec = session.get(MixedOutputRecord, mix_id)
                return _mix_from_record(rec) if rec else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load mix {mix_id}: {exc}") from exc

    def get_storage_path(self, mix_id: str) -> Optional[str]:
        try:
            with self.database.session() as session:
                rec = session.get(MixedOutputRecord, mix_id)
                return rec.storage_path if rec else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load mix {mix_id}: {exc}") from exc

    def list_for_audio(self, audio_id: str) -> List[MixResult]:
        try:
            with self.database.session() as session:
                rows = session.execute(
                    select(MixedOutputRecord)
                    .where(MixedOutputRecord.audio_id == audio_id)
                    .order_by(MixedOutputRecord.created_at)
                ).scalars().all()
                return [_mix_from_record(r) for r in rows]
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to list mixes for {audio_id}: {exc}") from exc
