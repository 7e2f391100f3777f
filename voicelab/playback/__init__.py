"""Ordered preview-playback strategies for individual voices."""

from .strategies import (
    DEFAULT_STRATEGIES,
    EmbedStrategy,
    PlaybackStrategy,
    PlaybackUnavailable,
    PreviewPlan,
    SegmentClipStrategy,
    SourceAudioStrategy,
    StrategyNotApplicable,
    is_playable_audio_url,
    resolve_preview,
)

__all__ = [
    'DEFAULT_STRATEGIES',
    'EmbedStrategy',
    'PlaybackStrategy',
    'PlaybackUnavailable',
    'PreviewPlan',
    'SegmentClipStrategy',
    'SourceAudioStrategy',
    'StrategyNotApplicable',
    'is_playable_audio_url',
    'resolve_preview',
]
