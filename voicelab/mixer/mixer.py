"""
Audio Mixer engine using pydub.

Lifts the active voice slices out of the source audio, layers them over a
silent base at their original positions, adds optional narration and exports
the result.
"""

from __future__ import annotations

import io
import math
from typing import Iterable, List, Optional

from pydub import AudioSegment

from .config import MixerConfig, VoiceTrack, volume_to_db


class AudioMixer:
    """High-level audio mixer using pydub."""

    def __init__(self, config: MixerConfig | None = None):
        self.config = config or MixerConfig()

    # ---------------------
    # Public API
    # ---------------------
    def mix(
        self,
        source: Optional[AudioSegment],
        duration_s: float,
        tracks: Iterable[VoiceTrack],
        narration: Optional[AudioSegment] = None,
        master_volume: float = 1.0,
    ) -> AudioSegment:
        """
        Mix the provided voice tracks according to the configuration.

        Args:
            source: Decoded source audio, or None when no bytes are available
            duration_s: Length of the audio file in seconds
            tracks: Active voices to lift from `source`
            narration: Optional synthesized speech, placed at t=0
            master_volume: Linear master volume in [0, 1]

        Returns:
            The mixed AudioSegment
        """
        track_list: List[VoiceTrack] = list(tracks)

        total_ms = int(max(0.0, float(duration_s)) * 1000)
        if narration is not None:
            narration = self._prepare(narration)
            total_ms = max(total_ms, len(narration))

        base = AudioSegment.silent(duration=total_ms, frame_rate=self.config.output_sample_rate)
        if base.channels != self.config.output_channels:
            base = base.set_channels(self.config.output_channels)

        if source is not None:
            source = self._prepare(source)
            for track in track_list:
                gain = float(master_volume) * float(track.volume)
                if gain <= 0.0:
                    continue
                start_ms = max(0, int(track.start_time_s * 1000))
                end_ms = min(int(track.end_time_s * 1000), len(source))
                if end_ms <= start_ms:
                    continue
                piece = source[start_ms:end_ms].apply_gain(volume_to_db(gain))
                base = base.overlay(piece, position=start_ms)

        if narration is not None and master_volume > 0.0:
            base = base.overlay(narration.apply_gain(volume_to_db(master_volume)), position=0)

        if self.config.normalize:
            base = self._normalize_peak(base, self.config.target_peak_dbfs)
        return base

    def export(self, segment: AudioSegment) -> bytes:
        buf = io.BytesIO()
        segment.export(buf, format=self.config.output_format)
        return buf.getvalue()

    # ---------------------
    # Internals
    # ---------------------
    def _prepare(self, seg: AudioSegment) -> AudioSegment:
        # Resample and set channels
        if seg.frame_rate != self.config.output_sample_rate:
            seg = seg.set_frame_rate(self.config.output_sample_rate)
        if seg.channels != self.config.output_channels:
            seg = seg.set_channels(self.config.output_channels)
        return seg

    def _normalize_peak(self, seg: AudioSegment, target_peak_dbfs: float) -> AudioSegment:
        # Silence has no peak to shift.
        if math.isinf(seg.max_dBFS):
            return seg
        shift = target_peak_dbfs - seg.max_dBFS
        if shift != 0.0:
            return seg.apply_gain(shift)
        return seg
