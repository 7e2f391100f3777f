"""
Simple ElevenLabs text-to-speech client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import logging
import uuid

import requests

from voicelab.errors import SynthesisError
from voicelab.pipeline.dto import VoiceCharacteristics
from voicelab.settings import Settings


logger = logging.getLogger("voicelab.speech.elevenlabs")


# Premade ElevenLabs voices, keyed by coarse pitch band.
VOICE_PRESETS: Dict[str, str] = {
    "high": "9BWtsMINqrJLrRacOk9x",    # Aria
    "medium": "TxGEqnHWrfWFTfGW9XjX",  # Josh
    "low": "VR6AewLTigWG4xSOukaG",     # Arnold
    "default": "pNInz6obpgDQGcFmaJgB", # Adam
}


def select_voice_preset(characteristics: Optional[VoiceCharacteristics]) -> str:
    """Map a voice's pitch to a preset name."""
    if characteristics is None:
        return "default"
    if characteristics.pitch > 0.7:
        return "high"
    if characteristics.pitch > 0.4:
        return "medium"
    return "low"


@dataclass
class ElevenLabsConfig:
    api_key: str
    voice_id: str = VOICE_PRESETS["default"]
    model_id: str = "eleven_multilingual_v2"
    stability: float = 0.5
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True
    base_url: str = "https://api.elevenlabs.io"
    timeout_s: float = 30.0


class ElevenLabsClient:
    def __init__(self, config: ElevenLabsConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "accept": "audio/mpeg",
                "xi-api-key": config.api_key,
                "Content-Type": "application/json",
            }
        )

    def synthesize(
        self,
        text: str,
        voice_id: Optional[str] = None,
        model_id: Optional[str] = None,
    ) -> bytes:
        """
        Generate speech audio bytes (MP3) for the given text.
        """
        if not text or not text.strip():
            raise SynthesisError("Cannot synthesize empty text")
        payload = {
            "text": text,
            "model_id": model_id or self.config.model_id,
            "voice_settings": {
                "stability": self.config.stability,
                "similarity_boost": self.config.similarity_boost,
                "style": self.config.style,
                "use_speaker_boost": self.config.use_speaker_boost,
            },
        }
        vid = voice_id or self.config.voice_id
        url = f"{self.config.base_url}/v1/text-to-speech/{vid}"
        try:
            resp = self.session.post(url, json=payload, timeout=self.config.timeout_s)
        except requests.RequestException as exc:
            logger.error("ElevenLabs request failed: %s", exc)
            raise SynthesisError(f"Speech synthesis request failed: {exc}") from exc
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            logger.error("ElevenLabs synthesis failed: %s", resp.text)
            raise SynthesisError(f"Speech synthesis failed: HTTP {resp.status_code}") from exc
        if not resp.content:
            raise SynthesisError("Speech synthesis returned no audio")
        return resp.content

    def synthesize_for_voice(
        self,
        text: str,
        characteristics: Optional[VoiceCharacteristics] = None,
    ) -> bytes:
        preset = select_voice_preset(characteristics)
        logger.info("Synthesizing %d chars with preset %s", len(text or ""), preset)
        return self.synthesize(text, voice_id=VOICE_PRESETS[preset])


def build_elevenlabs_client(settings: Settings) -> Optional[ElevenLabsClient]:
    """Client from settings, or None when no API key is configured."""
    if not settings.elevenlabs_api_key:
        logger.info("ELEVENLABS_API_KEY not set; speech synthesis disabled")
        return None
    config = ElevenLabsConfig(
        api_key=settings.elevenlabs_api_key,
        model_id=settings.elevenlabs_model_id,
        timeout_s=settings.http_timeout_s,
    )
    return ElevenLabsClient(config)


def safe_filename(prefix: str = "speech", suffix: str = ".mp3") -> str:
    return f"{prefix}_{uuid.uuid4().hex}{suffix}"
