"""Editable per-audio voice state with write-through persistence."""

from .store import VoiceStateStore

__all__ = ['VoiceStateStore']

__version__ = '0.1.0'
