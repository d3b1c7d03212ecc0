from .base import BlockEncoder, MediaDecoder, Resampler
