"""Pipeline package: DTOs, application context and orchestration service.

Only the DTOs are re-exported here; import the context and service from
`voicelab.pipeline.context` and `voicelab.pipeline.service`.
"""

from .dto import (
    PALETTE,
    AudioFile,
    MixRequest,
    MixResult,
    Voice,
    VoiceCharacteristics,
)

__all__ = [
    "PALETTE",
    "AudioFile",
    "MixRequest",
    "MixResult",
    "Voice",
    "VoiceCharacteristics",
]
