"""
Speech generation utilities.

Currently exposes ElevenLabs client helpers.
"""

from .elevenlabs_client import (
    VOICE_PRESETS,
    ElevenLabsClient,
    ElevenLabsConfig,
    build_elevenlabs_client,
    safe_filename,
    select_voice_preset,
)

__all__ = [
    "VOICE_PRESETS",
    "ElevenLabsClient",
    "ElevenLabsConfig",
    "build_elevenlabs_client",
    "safe_filename",
    "select_voice_preset",
]
