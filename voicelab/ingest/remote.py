"""
Remote video resolver.

Validates YouTube links and resolves a display title and an estimated
duration. The oEmbed endpoint only knows the title; when an LLM is configured
it is asked for whatever is still missing. Every lookup is best-effort: on
failure the resolver falls back to defaults and logs a warning.

The returned duration is always capped at `MAX_REMOTE_DURATION_S`.
"""

from __future__ import annotations

import json
import logging
import math
import re
import time
from dataclasses import dataclass
from typing import Dict, Optional

import requests
from openai import OpenAI, OpenAIError

from voicelab.errors import InvalidSourceError


logger = logging.getLogger("voicelab.ingest.remote")


MAX_REMOTE_DURATION_S = 180

YOUTUBE_URL_RE = re.compile(r"^(https?://)?(www\.|m\.)?(youtube\.com|youtu\.be)/.+$", re.IGNORECASE)

_VIDEO_ID_PATTERNS = (
    re.compile(r"[?&]v=([A-Za-z0-9_-]{11})"),
    re.compile(r"youtu\.be/([A-Za-z0-9_-]{11})"),
    re.compile(r"/shorts/([A-Za-z0-9_-]{11})"),
    re.compile(r"/embed/([A-Za-z0-9_-]{11})"),
)

OEMBED_URL = "https://www.youtube.com/oembed"


def extract_video_id(url: str) -> str:
    """Return the 11-character video id, raising InvalidSourceError otherwise.

    Example:
        >>> extract_video_id("https://youtu.be/dQw4w9WgXcQ")
        'dQw4w9WgXcQ'
    """
    url = (url or "").strip()
    if not YOUTUBE_URL_RE.match(url):
        raise InvalidSourceError(f"Not a YouTube URL: {url!r}")
    for pattern in _VIDEO_ID_PATTERNS:
        m = pattern.search(url)
        if m:
            return m.group(1)
    raise InvalidSourceError(f"Could not find a video id in {url!r}")


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def embed_url(video_id: str) -> str:
    return f"https://www.youtube.com/embed/{video_id}"


@dataclass
class RemoteVideoInfo:
    video_id: str
    title: str
    duration: int
    url: str


SYSTEM_PROMPT = """You estimate metadata for a YouTube video from its URL and (possibly empty) title.

Answer strictly in the json format: {"title": title, "duration_seconds": seconds}.
Use your best guess for the duration in whole seconds. Do not add explanations."""


@dataclass
class LLMConfig:
    api_key: str
    model: str = "gpt-4o-mini"
    base_url: Optional[str] = None
    max_tokens: int = 60
    temperature: float = 0.0
    timeout_s: float = 30.0


class LLMVideoDescriber:
    """Asks a chat-completion model for a title and duration estimate."""

    def __init__(self, config: LLMConfig, client: Optional[OpenAI] = None):
        self.config = config
        self.client = client or OpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=config.timeout_s,
        )
        logger.info("LLM video describer initialized with model: %s", config.model)

    def describe(self, url: str, title: Optional[str] = None) -> Dict:
        start_time = time.perf_counter()
        response = self.client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"URL: {url}\nTitle: {title or ''}"},
            ],
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            response_format={"type": "json_object"},
        )
        content = (response.choices[0].message.content or "").strip()
        result = self._parse_response(content)
        logger.debug("LLM description completed in %.2fs: %s", time.perf_counter() - start_time, result)
        return result

    @staticmethod
    def _parse_response(content: str) -> Dict:
        # Models sometimes wrap JSON in markdown fences.
        json_match = re.search(r"\{[^}]+\}", content)
        data = json.loads(json_match.group(0) if json_match else content)
        result: Dict = {}
        title = data.get("title")
        if isinstance(title, str) and title.strip():
            result["title"] = title.strip()
        duration = data.get("duration_seconds", data.get("duration"))
        if duration is not None:
            duration = float(duration)
            if math.isfinite(duration) and int(duration) > 0:
                result["duration"] = int(duration)
        return result


class YouTubeResolver:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        llm: Optional[LLMVideoDescriber] = None,
        timeout_s: float = 30.0,
        max_duration_s: int = MAX_REMOTE_DURATION_S,
    ):
        self.session = session or requests.Session()
        self.llm = llm
        self.timeout_s = timeout_s
        self.max_duration_s = min(int(max_duration_s), MAX_REMOTE_DURATION_S)

    def resolve(self, url: str) -> RemoteVideoInfo:
        video_id = extract_video_id(url)
        canonical = watch_url(video_id)

        title = self._oembed_title(canonical)
        duration: Optional[int] = None

        if self.llm is not None:
            try:
                guess = self.llm.describe(canonical, title)
                title = title or guess.get("title")
                duration = guess.get("duration")
            except (OpenAIError, ValueError, TypeError, AttributeError, OverflowError) as exc:
                logger.warning("LLM metadata lookup failed for %s: %s", video_id, exc)

        if not title:
            title = f"YouTube Video {video_id}"
        if not duration:
            duration = self.max_duration_s
        duration = min(int(duration), self.max_duration_s)

        logger.info("Resolved %s -> %r (%ds)", video_id, title, duration)
        return RemoteVideoInfo(video_id=video_id, title=title, duration=duration, url=canonical)

    def _oembed_title(self, canonical: str) -> Optional[str]:
        try:
            resp = self.session.get(
                OEMBED_URL,
                params={"url": canonical, "format": "json"},
                timeout=self.timeout_s,
            )
            resp.raise_for_status()
            title = resp.json().get("title")
        except (requests.RequestException, ValueError) as exc:
            logger.warning("oEmbed lookup failed for %s: %s", canonical, exc)
            return None
        return title.strip() if isinstance(title, str) and title.strip() else None
