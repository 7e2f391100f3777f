"""
Segmenter configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


MIN_VOICES = 2
MAX_VOICES = 5


@dataclass
class SegmenterConfig:
    """Configuration for the placeholder voice segmenter.

    Attributes:
        min_voices: Lower bound of voices per audio file (inclusive)
        max_voices: Upper bound of voices per audio file (inclusive)
        overlap_s: Seconds each segment extends into its successor
        seed: Optional RNG seed for reproducible segmentation
    """

    min_voices: int = 2
    max_voices: int = 4
    overlap_s: float = 5.0
    seed: Optional[int] = None

    def __post_init__(self):
        if not MIN_VOICES <= self.min_voices <= self.max_voices <= MAX_VOICES:
            raise ValueError(
                f"Voice count range must satisfy {MIN_VOICES} <= min <= max <= {MAX_VOICES}, "
                f"got {self.min_voices}..{self.max_voices}"
            )
        if self.overlap_s < 0:
            raise ValueError("overlap_s must be >= 0")
