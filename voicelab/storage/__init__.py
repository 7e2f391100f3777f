"""
Durable object storage.

The first segment of every object path names its bucket, e.g.
``audio_files/<id>-clip.wav`` or ``mixed_outputs/mixed-<id>-<mix id>.wav``.

Example:
    >>> from voicelab.storage import LocalObjectStorage
    >>> storage = LocalObjectStorage("data/storage", base_url="/storage")
    >>> url = storage.put(b"...", "audio_files/clip.wav", content_type="audio/wav")
"""

from .base import ObjectStorage, split_bucket
from .local import LocalObjectStorage
from .supabase import SupabaseObjectStorage

__all__ = [
    "ObjectStorage",
    "LocalObjectStorage",
    "SupabaseObjectStorage",
    "split_bucket",
]
