"""
Audio ingestion.

Example:
    >>> from voicelab.ingest import AudioIngestor, UploadSource
    >>> ingestor = AudioIngestor(storage, audio_repo)
    >>> audio = ingestor.ingest(UploadSource("clip.wav", data))
    >>> audio.duration, len(audio.waveform)
    (30, 30)
"""

from .processor import AudioIngestor, RemoteSource, UploadSource
from .remote import (
    MAX_REMOTE_DURATION_S,
    LLMConfig,
    LLMVideoDescriber,
    RemoteVideoInfo,
    YouTubeResolver,
    embed_url,
    extract_video_id,
)
from .utils import generate_waveform, new_id

__all__ = [
    'AudioIngestor',
    'UploadSource',
    'RemoteSource',
    'YouTubeResolver',
    'RemoteVideoInfo',
    'LLMConfig',
    'LLMVideoDescriber',
    'MAX_REMOTE_DURATION_S',
    'extract_video_id',
    'embed_url',
    'generate_waveform',
    'new_id',
]

__version__ = '0.1.0'
