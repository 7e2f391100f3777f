"""
Audio Mixer

Combines the active voice slices of an audio file and optional synthesized
narration into a single WAV artifact with per-voice and master volume.

Example:
    >>> from voicelab.mixer import AudioMixer, MixerConfig, VoiceTrack
    >>> tracks = [VoiceTrack(voice_id="v1", start_time_s=0.0, end_time_s=10.0, volume=0.5)]
    >>> mixer = AudioMixer(MixerConfig())
    >>> mixed = mixer.mix(source, duration_s=30, tracks=tracks)
    >>> len(mixed)
    30000
"""

from .config import MixerConfig, VoiceTrack, volume_to_db
from .mixer import AudioMixer
from .voice_mixer import VoiceMixer, mix_storage_path

__all__ = [
    'MixerConfig',
    'VoiceTrack',
    'AudioMixer',
    'VoiceMixer',
    'mix_storage_path',
    'volume_to_db',
]

__version__ = '0.1.0'
