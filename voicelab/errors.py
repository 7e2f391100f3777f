"""
Error taxonomy shared by every Voice Lab module.

Adapters catch library exceptions at their boundary and re-raise one of
these, so callers (and the HTTP layer) can tell failure kinds apart.
"""


class VoiceLabError(Exception):
    """Base class for all Voice Lab errors."""


class InvalidSourceError(VoiceLabError):
    """Input URL or uploaded file type is not accepted."""


class DecodeError(VoiceLabError):
    """Audio bytes could not be decoded."""


class StorageError(VoiceLabError):
    """Object storage or database read/write failed."""


class SaveError(VoiceLabError):
    """A voice update or delete could not be persisted."""


class SynthesisError(VoiceLabError):
    """Text-to-speech generation failed."""


class AnalysisError(VoiceLabError):
    """Voice segmentation failed."""


class NotFoundError(VoiceLabError):
    """Requested audio file, voice or mix does not exist."""


class OperationInProgressError(VoiceLabError):
    """A conflicting action is already running for the same audio file."""
