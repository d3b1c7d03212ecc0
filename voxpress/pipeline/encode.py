import asyncio
import logging
import numbers
from typing import Callable, Iterator, List, Optional

import numpy as np

from ..backends.base import BlockEncoder
from ..constants import DEFAULT_BLOCK_SIZE, DEFAULT_PROGRESS_INTERVAL, GRANULE_SIZE
from ..core.errors import ConfigurationError
from .progress import ProgressCallback, ProgressReporter

logger = logging.getLogger("Voxpress.Encode")


def check_block_size(block_size) -> None:
    valid = isinstance(block_size, numbers.Integral) and not isinstance(block_size, bool)
    if not valid or block_size <= 0 or block_size % GRANULE_SIZE != 0:
        raise ConfigurationError(f"Block size must be a positive multiple of {GRANULE_SIZE}, got {block_size!r}")


def iter_blocks(samples: np.ndarray, block_size: int = DEFAULT_BLOCK_SIZE) -> Iterator[np.ndarray]:
    """Yield consecutive full blocks as views. A trailing partial block is not yielded."""
    for offset in range(0, len(samples) - block_size + 1, block_size):
        yield samples[offset:offset + block_size]


def remainder(samples: np.ndarray, block_size: int = DEFAULT_BLOCK_SIZE) -> np.ndarray:
    """The trailing samples that do not fill a whole block."""
    return samples[len(samples) - len(samples) % block_size:]


def _encode_steps(
    samples: np.ndarray,
    encoder: BlockEncoder,
    block_size: int,
    reporter: ProgressReporter,
    pad_tail: bool,
    chunks: List[bytes],
    on_flush: Optional[Callable[[], None]] = None,
) -> Iterator[float]:
    """Drive the encoder over `samples`, appending output to `chunks`. Yields at each progress tick."""
    offset = 0
    for block in iter_blocks(samples, block_size):
        chunk = encoder.encode_block(block)
        if len(chunk) > 0:
            chunks.append(chunk)
        offset += block_size

        value = reporter.block_done(offset)
        if value is not None:
            yield value

    tail = remainder(samples, block_size)
    if len(tail) > 0:
        if pad_tail:
            padded = np.zeros(block_size, dtype=samples.dtype)
            padded[:len(tail)] = tail
            logger.debug(f"Padding {len(tail)} trailing samples to a full block")
            chunk = encoder.encode_block(padded)
            if len(chunk) > 0:
                chunks.append(chunk)
        else:
            logger.debug(f"Dropping {len(tail)} trailing samples shorter than one block")

    if on_flush is not None:
        on_flush()
    chunk = encoder.flush()
    if len(chunk) > 0:
        chunks.append(chunk)


def _prepare(encoder, block_size, on_progress, progress_interval, total):
    if encoder is None:
        raise ConfigurationError("Audio encoder is not available.")
    check_block_size(block_size)
    return ProgressReporter(on_progress, block_size, total, interval=progress_interval)


def encode(
    samples: np.ndarray,
    encoder: Optional[BlockEncoder],
    block_size: int = DEFAULT_BLOCK_SIZE,
    on_progress: Optional[ProgressCallback] = None,
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
    pad_tail: bool = False,
    on_flush: Optional[Callable[[], None]] = None,
) -> List[bytes]:
    """
    Encode int16 samples block by block and return the non-empty chunks in order.

    Only full blocks are submitted; `flush()` runs exactly once at the end.
    With `pad_tail` the last partial block is zero-padded and submitted before
    the flush instead of being dropped. `on_flush` is called just before the
    encoder is flushed.

    Raises:
        ConfigurationError: No encoder, or an invalid block size. Raised before
            any sample is processed.
    """
    reporter = _prepare(encoder, block_size, on_progress, progress_interval, len(samples))
    chunks: List[bytes] = []
    for _ in _encode_steps(samples, encoder, block_size, reporter, pad_tail, chunks, on_flush):
        pass
    return chunks


async def encode_async(
    samples: np.ndarray,
    encoder: Optional[BlockEncoder],
    block_size: int = DEFAULT_BLOCK_SIZE,
    on_progress: Optional[ProgressCallback] = None,
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
    pad_tail: bool = False,
    on_flush: Optional[Callable[[], None]] = None,
) -> List[bytes]:
    """Same as `encode`, yielding to the event loop after every progress tick."""
    reporter = _prepare(encoder, block_size, on_progress, progress_interval, len(samples))
    chunks: List[bytes] = []
    for _ in _encode_steps(samples, encoder, block_size, reporter, pad_tail, chunks, on_flush):
        await asyncio.sleep(0)
    return chunks
