class VoxpressError(Exception):
    """Base class for all Voxpress errors."""


class ConfigurationError(VoxpressError):
    """A required capability is missing or misconfigured (encoder, ffmpeg, block size)."""


class DecodeError(VoxpressError):
    """The media decoder could not turn the input into PCM."""


class RenderError(VoxpressError):
    """The resampler could not render PCM into the target format."""


class FileTooLargeError(VoxpressError):
    """Input exceeds the caller-side size limit. Raised before the pipeline starts."""
