"""
Voice segmentation.

Example:
    >>> from voicelab.segmentation import VoiceSegmenter, SegmenterConfig
    >>> segmenter = VoiceSegmenter(SegmenterConfig(seed=7))
    >>> voices = segmenter.segment(audio_file)
    >>> 2 <= len(voices) <= 5
    True
"""

from .config import SegmenterConfig
from .segmenter import VoiceAnalyzer, VoiceSegmenter, clip_path

__all__ = [
    'SegmenterConfig',
    'VoiceSegmenter',
    'VoiceAnalyzer',
    'clip_path',
]

__version__ = '0.1.0'
