import logging

import numpy as np

from .base import BlockEncoder
from ..core.errors import ConfigurationError

logger = logging.getLogger("Voxpress.Lame")


class LameBlockEncoder(BlockEncoder):
    """MP3 block encoder backed by the LAME bindings in `lameenc`."""

    def __init__(self, channels: int = 1, sample_rate: int = 16000, bitrate_kbps: int = 64, quality: int = 2):
        super().__init__(channels, sample_rate, bitrate_kbps)
        try:
            import lameenc
        except ImportError as e:
            raise ConfigurationError("Audio encoder library (lameenc) not installed.") from e

        self._encoder = lameenc.Encoder()
        self._encoder.set_bit_rate(bitrate_kbps)
        self._encoder.set_in_sample_rate(sample_rate)
        self._encoder.set_channels(channels)
        self._encoder.set_quality(quality)  # 2 = highest, 7 = fastest
        self._flushed = False
        self._started = False
        logger.debug(f"LAME encoder ready: {channels}ch @ {sample_rate} Hz, {bitrate_kbps} kbps, quality {quality}")

    @property
    def name(self) -> str:
        return "lame"

    def encode_block(self, block: np.ndarray) -> bytes:
        if self._flushed:
            raise RuntimeError("Encoder already flushed; create a new one per conversion.")
        pcm = np.ascontiguousarray(block, dtype="<i2").tobytes()
        self._started = True
        return bytes(self._encoder.encode(pcm))

    def flush(self) -> bytes:
        self._flushed = True
        # lameenc refuses to flush a stream that never received samples
        if not self._started:
            return b""
        return bytes(self._encoder.flush())
