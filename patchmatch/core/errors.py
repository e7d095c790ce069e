"""
Error types raised by the analysis front door.
Optimizer-side problems never raise; they degrade to a neutral energy instead.
"""


class PatchMatchError(Exception):
    """Base error for patchmatch."""


class InvalidInputError(PatchMatchError, ValueError):
    """Buffer is empty, malformed, non-finite or larger than the accepted bound."""


class SilentAudioError(PatchMatchError):
    """Input level is below the silence threshold (or has no peak at all)."""


class DecodeError(PatchMatchError):
    """Byte stream could not be interpreted as PCM audio."""
