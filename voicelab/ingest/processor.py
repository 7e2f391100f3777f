"""Ingestion of uploaded audio files and remote video links.

This module provides `AudioIngestor` which accepts either raw upload bytes or
a remote URL and normalizes them into a single persisted `AudioFile` record:
decoded duration, placeholder waveform, stored bytes and a playable url.
"""

from __future__ import annotations

import logging
import random
import re
import time
from dataclasses import dataclass, field
from typing import Optional, Union

from voicelab.database import AudioFileRepository
from voicelab.errors import InvalidSourceError, StorageError
from voicelab.pipeline.dto import AudioFile
from voicelab.storage import ObjectStorage

from .remote import YouTubeResolver
from .utils import (
    AUDIO_EXTENSIONS,
    content_type_for,
    decode_audio,
    duration_seconds,
    extension_of,
    format_from_filename,
    generate_waveform,
    new_id,
    sniff_format,
)


AUDIO_BUCKET = "audio_files"


@dataclass
class UploadSource:
    filename: str
    data: bytes = field(repr=False)


@dataclass
class RemoteSource:
    url: str


Source = Union[UploadSource, RemoteSource]


def safe_object_name(filename: str) -> str:
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", filename or "").strip("._")
    return name or "audio"


class AudioIngestor:
    """Turn an upload or a remote reference into a stored `AudioFile`."""

    def __init__(
        self,
        storage: ObjectStorage,
        audio_repo: AudioFileRepository,
        resolver: Optional[YouTubeResolver] = None,
        rng: Optional[random.Random] = None,
    ):
        self.storage = storage
        self.audio_repo = audio_repo
        self.resolver = resolver or YouTubeResolver()
        self.rng = rng or random.Random()
        self.logger = logging.getLogger("voicelab.ingest")

    def ingest(self, source: Source) -> AudioFile:
        if isinstance(source, UploadSource):
            return self.ingest_upload(source.filename, source.data)
        if isinstance(source, RemoteSource):
            return self.ingest_remote(source.url)
        raise InvalidSourceError(f"Unsupported source: {type(source).__name__}")

    def ingest_upload(self, filename: str, data: bytes) -> AudioFile:
        fmt = sniff_format(data or b"")
        if extension_of(filename) not in AUDIO_EXTENSIONS and fmt is None:
            raise InvalidSourceError(f"Unsupported audio file type: {filename!r}")

        audio_id = new_id()
        self.logger.info("[Audio %s] Ingest: decoding %s (%d bytes)", audio_id, filename, len(data or b""))
        t0 = time.perf_counter()
        segment = decode_audio(data, format_from_filename(filename))
        duration = duration_seconds(segment)
        self.logger.info("[Audio %s] Ingest: decoded %ds in %.2fs", audio_id, duration, time.perf_counter() - t0)

        # Stored name always carries an audio extension so its url stays playable.
        name = safe_object_name(filename)
        if extension_of(name) not in AUDIO_EXTENSIONS:
            name = f"{name}.{fmt or 'wav'}"
        storage_path = f"{AUDIO_BUCKET}/{audio_id}-{name}"
        url = self.storage.put(data, storage_path, content_type=content_type_for(name))

        audio_file = AudioFile(
            id=audio_id,
            name=filename,
            url=url,
            duration=duration,
            waveform=generate_waveform(duration, self.rng),
            source_type="upload",
            storage_path=storage_path,
            source_bytes=data,
        )
        try:
            self.audio_repo.add(audio_file)
        except StorageError:
            self.logger.warning("[Audio %s] Ingest: record insert failed, removing %s", audio_id, storage_path)
            self.storage.delete(storage_path)
            raise
        self.logger.info("[Audio %s] Ingest: stored as %s", audio_id, url)
        return audio_file

    def ingest_remote(self, url: str) -> AudioFile:
        t0 = time.perf_counter()
        info = self.resolver.resolve(url)
        audio_id = new_id()
        audio_file = AudioFile(
            id=audio_id,
            name=info.title,
            url=info.url,
            duration=info.duration,
            waveform=generate_waveform(info.duration, self.rng),
            source_type="youtube",
            source_url=url.strip(),
        )
        self.audio_repo.add(audio_file)
        self.logger.info(
            "[Audio %s] Ingest: remote video %s resolved in %.2fs (%ds)",
            audio_id,
            info.video_id,
            time.perf_counter() - t0,
            info.duration,
        )
        return audio_file
