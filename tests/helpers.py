from typing import List, Optional

import numpy as np

from voxpress.backends.base import BlockEncoder, MediaDecoder, Resampler
from voxpress.core.models import PcmBuffer


class RecordingEncoder(BlockEncoder):
    """Encoder double: returns one marker byte per block and records every call."""

    def __init__(self, channels: int = 1, sample_rate: int = 16000, bitrate_kbps: int = 64,
                 empty_every: int = 0, flush_output: bytes = b"\xff"):
        super().__init__(channels, sample_rate, bitrate_kbps)
        self.calls: List[str] = []
        self.blocks: List[np.ndarray] = []
        self.empty_every = empty_every
        self.flush_output = flush_output

    @property
    def name(self) -> str:
        return "recording"

    def encode_block(self, block: np.ndarray) -> bytes:
        self.calls.append("encode_block")
        self.blocks.append(np.array(block, copy=True))
        index = len(self.blocks)
        if self.empty_every and index % self.empty_every == 0:
            return b""
        return bytes([index % 256])

    def flush(self) -> bytes:
        self.calls.append("flush")
        return self.flush_output


class StaticDecoder(MediaDecoder):
    def __init__(self, pcm: PcmBuffer, error: Optional[Exception] = None):
        self.pcm = pcm
        self.error = error
        self.calls = []

    def decode(self, data, media_type=None, name_hint=None) -> PcmBuffer:
        self.calls.append((len(data), media_type, name_hint))
        if self.error:
            raise self.error
        return self.pcm


class PassThroughResampler(Resampler):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls = 0

    def render(self, pcm: PcmBuffer, target_rate: int, target_channels: int = 1) -> PcmBuffer:
        self.calls += 1
        if self.error:
            raise self.error
        return PcmBuffer(samples=pcm.samples[:, :1], sample_rate=target_rate, channels=1)


def mono_pcm(samples, sample_rate: int = 16000) -> PcmBuffer:
    data = np.asarray(samples, dtype=np.float32).reshape(-1, 1)
    return PcmBuffer(samples=data, sample_rate=sample_rate, channels=1)
