from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from ..core.models import PcmBuffer


class BlockEncoder(ABC):
    """
    Stateful, stream-oriented audio encoder.

    Instances carry bit-reservoir state across calls and are scoped to exactly
    one conversion; never reuse one after flush().

    Attributes:
        channels (int): Number of interleaved input channels.
        sample_rate (int): Input sample rate in Hz.
        bitrate_kbps (int): Target constant bitrate.
    """

    def __init__(self, channels: int, sample_rate: int, bitrate_kbps: int):
        self.channels = channels
        self.sample_rate = sample_rate
        self.bitrate_kbps = bitrate_kbps

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique name of the encoder (e.g. 'lame')."""
        pass

    @abstractmethod
    def encode_block(self, block: np.ndarray) -> bytes:
        """
        Encode one block of int16 samples.

        Returns the encoded bytes, or b"" while the encoder is still buffering.
        """
        pass

    @abstractmethod
    def flush(self) -> bytes:
        """Emit any internally buffered output. Called once at end-of-stream."""
        pass


class MediaDecoder(ABC):
    """Turns a container/codec byte buffer into float PCM at its native format."""

    @abstractmethod
    def decode(self, data: bytes, media_type: Optional[str] = None, name_hint: Optional[str] = None) -> PcmBuffer:
        """
        Decode raw media bytes.

        Args:
            data: The complete media file.
            media_type: Declared MIME type, if known.
            name_hint: Original file name, used to pick a container suffix.

        Raises:
            DecodeError: The format is unsupported or the data is corrupt.
        """
        pass


class Resampler(ABC):
    """Converts PCM to a target sample rate and channel count."""

    @abstractmethod
    def render(self, pcm: PcmBuffer, target_rate: int, target_channels: int = 1) -> PcmBuffer:
        """
        Raises:
            RenderError: The requested conversion is not supported.
        """
        pass
