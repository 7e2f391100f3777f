"""Utility functions for the ingestion module."""

from __future__ import annotations

import io
import math
import random
import uuid
from pathlib import PurePosixPath
from typing import List, Optional

from pydub import AudioSegment

from voicelab.errors import DecodeError


AUDIO_EXTENSIONS = {".mp3", ".wav", ".ogg", ".m4a", ".aac", ".flac", ".webm", ".opus"}

CONTENT_TYPES = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "webm": "audio/webm",
    "opus": "audio/opus",
}


def new_id() -> str:
    """Opaque unique identifier."""
    return uuid.uuid4().hex


def generate_waveform(length: int, rng: Optional[random.Random] = None) -> List[float]:
    """Placeholder amplitudes in [0.2, 1.0] for visualization only.

    Example:
        >>> len(generate_waveform(30))
        30
    """
    rng = rng or random.Random()
    return [round(rng.random() * 0.8 + 0.2, 4) for _ in range(max(0, int(length)))]


def extension_of(filename: str) -> str:
    return PurePosixPath(filename or "").suffix.lower()


def format_from_filename(filename: str) -> Optional[str]:
    ext = extension_of(filename)
    return ext[1:] if ext else None


def sniff_format(data: bytes) -> Optional[str]:
    """Guess a container format from magic bytes."""
    if data[:4] == b"RIFF" and data[8:12] == b"WAVE":
        return "wav"
    if data[:3] == b"ID3" or data[:2] in (b"\xff\xfb", b"\xff\xf3", b"\xff\xf2"):
        return "mp3"
    if data[:4] == b"OggS":
        return "ogg"
    if data[:4] == b"fLaC":
        return "flac"
    return None


def decode_audio(data: bytes, fmt: Optional[str] = None) -> AudioSegment:
    """Decode bytes into an AudioSegment, raising DecodeError on failure.

    WAV data decodes in-process; other formats need ffmpeg on PATH.
    """
    if not data:
        raise DecodeError("Audio data is empty")
    fmt = sniff_format(data) or fmt
    try:
        return AudioSegment.from_file(io.BytesIO(data), format=fmt)
    except Exception as exc:
        raise DecodeError(f"Failed to decode audio data: {exc}") from exc


def duration_seconds(segment: AudioSegment) -> int:
    """Whole-second duration, rounded up."""
    return int(math.ceil(len(segment) / 1000.0))


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(format_from_filename(filename) or "", "application/octet-stream")
