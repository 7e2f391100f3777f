"""Relational store for audio files, voices and mix audit records."""

from .connection import Database
from .models import AudioFileRecord, Base, MixedOutputRecord, VoiceRecord
from .repository import AudioFileRepository, MixOutputRepository, VoiceRepository

__all__ = [
    "Database",
    "Base",
    "AudioFileRecord",
    "VoiceRecord",
    "MixedOutputRecord",
    "AudioFileRepository",
    "VoiceRepository",
    "MixOutputRepository",
]
