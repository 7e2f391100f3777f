"""
Mixer configuration and voice track description.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from voicelab.pipeline.dto import Voice


# Quietest gain applied to a non-muted track.
MIN_GAIN_DB = -60.0


def volume_to_db(volume: float) -> float:
    """Linear volume in (0, 1] to dB gain, floored at MIN_GAIN_DB.

    Example:
        >>> round(volume_to_db(0.5), 2)
        -6.02
    """
    if volume <= 0.0:
        return MIN_GAIN_DB
    return max(20.0 * math.log10(volume), MIN_GAIN_DB)


@dataclass
class VoiceTrack:
    """
    One active voice to lift from the source audio.

    Attributes:
        voice_id: Id of the voice the slice belongs to
        start_time_s: Slice start, also its position in the mix
        end_time_s: Slice end (exclusive)
        volume: Linear per-voice volume in [0, 1]
    """

    voice_id: str
    start_time_s: float
    end_time_s: float
    volume: float = 1.0

    @classmethod
    def from_voice(cls, voice: Voice) -> "VoiceTrack":
        return cls(
            voice_id=voice.id,
            start_time_s=voice.start_time,
            end_time_s=voice.end_time,
            volume=voice.volume,
        )


@dataclass
class MixerConfig:
    """Configuration for the audio mixer."""

    # Output audio settings
    output_sample_rate: int = 44100
    output_channels: int = 2
    output_format: str = 'wav'

    # Post-processing
    normalize: bool = False
    target_peak_dbfs: float = -1.0
