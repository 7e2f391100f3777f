"""Dataclass-based DTOs for audio files, voice segments and mix results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


SourceType = Literal["upload", "youtube"]

# Fixed colour palette linking a voice to its waveform region in the UI.
PALETTE = ("audio-blue", "audio-purple", "audio-pink", "audio-green", "audio-yellow")

CHARACTERISTIC_NAMES = ("pitch", "tone", "speed", "clarity")


def _check_unit(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value}")
    return value


@dataclass
class VoiceCharacteristics:
    """Abstract descriptors of a voice, each within [0, 1]."""

    pitch: float = 0.5
    tone: float = 0.5
    speed: float = 0.5
    clarity: float = 0.5

    def __post_init__(self):
        for name in CHARACTERISTIC_NAMES:
            setattr(self, name, _check_unit(name, getattr(self, name)))

    def to_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in CHARACTERISTIC_NAMES}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "VoiceCharacteristics":
        data = data or {}
        return cls(**{name: data.get(name, 0.5) for name in CHARACTERISTIC_NAMES})


@dataclass
class AudioFile:
    id: str
    name: str
    url: Optional[str]
    duration: int
    waveform: List[float] = field(default_factory=list)
    source_type: SourceType = "upload"
    source_url: Optional[str] = None
    storage_path: Optional[str] = None
    # Present only right after a local upload; never persisted in the table.
    source_bytes: Optional[bytes] = field(default=None, repr=False, compare=False)
    created_at: Optional[str] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "duration": self.duration,
            "waveform": list(self.waveform),
            "source_type": self.source_type,
            "source_url": self.source_url,
            "created_at": self.created_at,
        }


@dataclass
class Voice:
    id: str
    audio_id: str
    start_time: float
    end_time: float
    tag: str
    color: str
    volume: float = 1.0
    characteristics: VoiceCharacteristics = field(default_factory=VoiceCharacteristics)
    audio_url: Optional[str] = None

    def __post_init__(self):
        self.volume = _check_unit("volume", self.volume)
        if self.color not in PALETTE:
            raise ValueError(f"color must be one of {PALETTE}, got {self.color!r}")

    def check_bounds(self, duration: float) -> None:
        """Raise ValueError unless 0 <= start < end <= duration."""
        if not (0.0 <= self.start_time < self.end_time <= float(duration)):
            raise ValueError(
                f"Voice {self.id} range [{self.start_time}, {self.end_time}] "
                f"is outside [0, {duration}]"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "audio_id": self.audio_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "tag": self.tag,
            "color": self.color,
            "volume": self.volume,
            "characteristics": self.characteristics.to_dict(),
            "audio_url": self.audio_url,
        }


@dataclass
class MixRequest:
    audio_id: str
    active: Dict[str, bool] = field(default_factory=dict)
    master_volume: float = 1.0
    narration_text: Optional[str] = None

    def __post_init__(self):
        self.master_volume = _check_unit("master_volume", self.master_volume)


@dataclass
class MixResult:
    id: str
    audio_id: str
    url: str
    blob: bytes = field(repr=False)
    active_voice_ids: List[str] = field(default_factory=list)
    narration_text: Optional[str] = None
    content_type: str = "audio/wav"
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "audio_id": self.audio_id,
            "url": self.url,
            "active_voice_ids": list(self.active_voice_ids),
            "narration_text": self.narration_text,
            "content_type": self.content_type,
            "size_bytes": len(self.blob) if self.blob is not None else 0,
            "created_at": self.created_at,
        }
