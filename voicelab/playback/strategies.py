"""
Preview playback strategies.

A voice preview is resolved by trying an ordered list of strategies. Each
strategy either returns a `PreviewPlan` or raises `PlaybackUnavailable`
naming itself and the reason; `resolve_preview` collects those failures and
never raises. A strategy that does not apply to the voice (no clip of its own,
a remote source that is not audio) raises `StrategyNotApplicable` and is
skipped silently; a plan reached after a real failure is marked degraded so
the UI can show it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from voicelab.errors import InvalidSourceError
from voicelab.ingest.remote import YOUTUBE_URL_RE, embed_url, extract_video_id
from voicelab.ingest.utils import AUDIO_EXTENSIONS, extension_of
from voicelab.pipeline.dto import AudioFile, Voice


logger = logging.getLogger("voicelab.playback")


class PlaybackUnavailable(Exception):
    def __init__(self, strategy: str, reason: str):
        super().__init__(f"{strategy}: {reason}")
        self.strategy = strategy
        self.reason = reason

    def to_dict(self) -> Dict[str, str]:
        return {"strategy": self.strategy, "reason": self.reason}


class StrategyNotApplicable(PlaybackUnavailable):
    pass


@dataclass
class PreviewPlan:
    url: Optional[str]
    start: float
    end: float
    strategy: Optional[str]
    degraded: bool = False
    failures: List[PlaybackUnavailable] = field(default_factory=list)

    @property
    def playable(self) -> bool:
        return self.url is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "start": self.start,
            "end": self.end,
            "strategy": self.strategy,
            "degraded": self.degraded,
            "playable": self.playable,
            "failures": [f.to_dict() for f in self.failures],
        }


def is_playable_audio_url(url: Optional[str]) -> bool:
    """True for http(s) or root-relative urls pointing at an audio file."""
    if not url:
        return False
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https", ""):
        return False
    if not parsed.scheme and not url.startswith("/"):
        return False
    return extension_of(parsed.path) in AUDIO_EXTENSIONS


UrlProbe = Callable[[Optional[str]], bool]


class PlaybackStrategy:
    name = "base"

    def plan(self, voice: Voice, audio_file: AudioFile) -> PreviewPlan:
        raise NotImplementedError

    def unavailable(self, reason: str) -> PlaybackUnavailable:
        return PlaybackUnavailable(self.name, reason)

    def not_applicable(self, reason: str) -> StrategyNotApplicable:
        return StrategyNotApplicable(self.name, reason)


class SegmentClipStrategy(PlaybackStrategy):
    """Play the voice's own exported clip."""

    name = "segment_clip"

    def __init__(self, probe: UrlProbe = is_playable_audio_url):
        self.probe = probe

    def plan(self, voice, audio_file):
        if not voice.audio_url or voice.audio_url == audio_file.url:
            raise self.not_applicable("voice has no clip of its own")
        if not self.probe(voice.audio_url):
            raise self.unavailable(f"clip url is not playable: {voice.audio_url}")
        return PreviewPlan(
            url=voice.audio_url,
            start=0.0,
            end=round(voice.end_time - voice.start_time, 3),
            strategy=self.name,
        )


class SourceAudioStrategy(PlaybackStrategy):
    """Play the parent audio file seeked to the segment."""

    name = "source_audio"

    def __init__(self, probe: UrlProbe = is_playable_audio_url):
        self.probe = probe

    def plan(self, voice, audio_file):
        if audio_file.source_type == "youtube":
            raise self.not_applicable("remote video has no audio url")
        if not self.probe(audio_file.url):
            raise self.unavailable(f"source url is not playable audio: {audio_file.url}")
        return PreviewPlan(url=audio_file.url, start=voice.start_time, end=voice.end_time, strategy=self.name)


class EmbedStrategy(PlaybackStrategy):
    """Fall back to the YouTube embed player with start/end."""

    name = "embed"

    def plan(self, voice, audio_file):
        candidate = audio_file.source_url or audio_file.url or ""
        if not YOUTUBE_URL_RE.match(candidate.strip()):
            raise self.unavailable("audio file has no embeddable source")
        try:
            video_id = extract_video_id(candidate)
        except InvalidSourceError as exc:
            raise self.unavailable(str(exc)) from exc
        start = int(voice.start_time)
        end = int(math.ceil(voice.end_time))
        return PreviewPlan(
            url=f"{embed_url(video_id)}?start={start}&end={end}&autoplay=1",
            start=voice.start_time,
            end=voice.end_time,
            strategy=self.name,
        )


DEFAULT_STRATEGIES: Sequence[PlaybackStrategy] = (
    SegmentClipStrategy(),
    SourceAudioStrategy(),
    EmbedStrategy(),
)


def resolve_preview(
    voice: Voice,
    audio_file: AudioFile,
    strategies: Sequence[PlaybackStrategy] = DEFAULT_STRATEGIES,
) -> PreviewPlan:
    failures: List[PlaybackUnavailable] = []
    for strategy in strategies:
        try:
            plan = strategy.plan(voice, audio_file)
        except StrategyNotApplicable as exc:
            logger.debug("Preview for voice %s skips %s", voice.id, exc)
            continue
        except PlaybackUnavailable as exc:
            failures.append(exc)
            continue
        except Exception as exc:
            failures.append(PlaybackUnavailable(strategy.name, f"unexpected error: {exc}"))
            continue
        plan.degraded = bool(failures)
        plan.failures = failures
        if plan.degraded:
            logger.warning(
                "Preview for voice %s degraded to %s (%s)",
                voice.id,
                plan.strategy,
                "; ".join(str(f) for f in failures),
            )
        return plan

    logger.warning("No preview strategy available for voice %s", voice.id)
    return PreviewPlan(
        url=None,
        start=voice.start_time,
        end=voice.end_time,
        strategy=None,
        degraded=True,
        failures=failures,
    )
