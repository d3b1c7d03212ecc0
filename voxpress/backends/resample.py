import logging
from math import gcd

import numpy as np
from scipy.signal import resample_poly

from .base import Resampler
from ..core.errors import RenderError
from ..core.models import PcmBuffer

logger = logging.getLogger("Voxpress.Resample")


class ScipyResampler(Resampler):
    """Downmix by channel average, then polyphase resampling."""

    def render(self, pcm: PcmBuffer, target_rate: int, target_channels: int = 1) -> PcmBuffer:
        if target_rate <= 0 or pcm.sample_rate <= 0:
            raise RenderError(f"Unsupported sample rate conversion: {pcm.sample_rate} Hz -> {target_rate} Hz")
        if target_channels not in (1, pcm.channels):
            raise RenderError(f"Cannot render {pcm.channels} channel(s) to {target_channels} channel(s)")
        if pcm.frames == 0:
            raise RenderError("Nothing to render: decoded audio is empty")

        samples = np.asarray(pcm.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples[:, np.newaxis]

        if target_channels == 1 and samples.shape[1] > 1:
            samples = samples.mean(axis=1, keepdims=True, dtype=np.float32)

        if pcm.sample_rate != target_rate:
            divisor = gcd(target_rate, pcm.sample_rate)
            up, down = target_rate // divisor, pcm.sample_rate // divisor
            logger.debug(f"Resampling {pcm.frames} frames {pcm.sample_rate} Hz -> {target_rate} Hz (up={up}, down={down})")
            samples = resample_poly(samples, up, down, axis=0).astype(np.float32)

        return PcmBuffer(samples=samples, sample_rate=target_rate, channels=samples.shape[1])
