"""Application context.

Every client (database, object storage, speech synthesis, remote resolver)
is built once here from `Settings` and handed to the adapters that need it.
The application root owns the context; nothing reaches for module globals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from voicelab.database import AudioFileRepository, Database, MixOutputRepository, VoiceRepository
from voicelab.ingest import AudioIngestor, LLMConfig, LLMVideoDescriber, YouTubeResolver
from voicelab.mixer import AudioMixer, MixerConfig, VoiceMixer
from voicelab.mixer.voice_mixer import Synthesizer
from voicelab.segmentation import SegmenterConfig, VoiceAnalyzer, VoiceSegmenter
from voicelab.settings import Settings
from voicelab.speech import build_elevenlabs_client
from voicelab.storage import LocalObjectStorage, ObjectStorage, SupabaseObjectStorage


logger = logging.getLogger("voicelab.pipeline")


@dataclass
class AppContext:
    settings: Settings
    database: Database
    storage: ObjectStorage
    audio_repo: AudioFileRepository
    voice_repo: VoiceRepository
    mix_repo: MixOutputRepository
    ingestor: AudioIngestor
    analyzer: VoiceAnalyzer
    voice_mixer: VoiceMixer
    synthesizer: Optional[Synthesizer] = None

    def close(self) -> None:
        self.database.dispose()


def build_storage(settings: Settings) -> ObjectStorage:
    if settings.storage_backend == "local":
        return LocalObjectStorage(settings.storage_root, base_url=settings.storage_base_url)
    if settings.storage_backend == "supabase":
        return SupabaseObjectStorage(
            settings.supabase_url or "",
            settings.supabase_key or "",
            timeout_s=settings.http_timeout_s,
        )
    raise ValueError(f"Unknown storage backend: {settings.storage_backend!r}")


def build_resolver(settings: Settings, session: Optional[requests.Session] = None) -> YouTubeResolver:
    llm = None
    if settings.openai_api_key:
        llm = LLMVideoDescriber(
            LLMConfig(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                base_url=settings.openai_base_url,
                timeout_s=settings.http_timeout_s,
            )
        )
    return YouTubeResolver(session=session, llm=llm, timeout_s=settings.http_timeout_s)


def build_context(
    settings: Settings,
    segmenter_config: Optional[SegmenterConfig] = None,
    mixer_config: Optional[MixerConfig] = None,
    synthesizer: Optional[Synthesizer] = None,
    resolver: Optional[YouTubeResolver] = None,
) -> AppContext:
    """Wire every adapter from settings.

    `synthesizer` and `resolver` override the ones built from settings.
    """
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    database = Database(settings.database_url)
    database.create_tables()
    storage = build_storage(settings)

    audio_repo = AudioFileRepository(database)
    voice_repo = VoiceRepository(database)
    mix_repo = MixOutputRepository(database)

    if synthesizer is None:
        synthesizer = build_elevenlabs_client(settings)

    ingestor = AudioIngestor(storage, audio_repo, resolver=resolver or build_resolver(settings))
    analyzer = VoiceAnalyzer(
        VoiceSegmenter(segmenter_config),
        voice_repo,
        storage=storage,
        export_clips=settings.export_clips,
    )
    voice_mixer = VoiceMixer(AudioMixer(mixer_config), storage, mix_repo, synthesizer=synthesizer)

    logger.info(
        "Context ready: storage=%s, synthesis=%s, export_clips=%s",
        settings.storage_backend,
        "on" if synthesizer is not None else "off",
        settings.export_clips,
    )
    return AppContext(
        settings=settings,
        database=database,
        storage=storage,
        audio_repo=audio_repo,
        voice_repo=voice_repo,
        mix_repo=mix_repo,
        ingestor=ingestor,
        analyzer=analyzer,
        voice_mixer=voice_mixer,
        synthesizer=synthesizer,
    )
