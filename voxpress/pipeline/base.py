import asyncio
import logging
import time
from typing import Callable, List, Optional

import numpy as np

from ..backends.base import BlockEncoder, MediaDecoder, Resampler
from ..core.errors import ConfigurationError
from ..core.factory import EncoderFactory
from ..core.models import AudioSettings, BinaryFile, ConversionStats, NamedBinaryFile, PipelineStage
from .assemble import assemble
from .encode import check_block_size, encode, encode_async
from .progress import ProgressCallback
from .quantize import quantize

logger = logging.getLogger("Voxpress.Pipeline")


class ConversionPipeline:
    """
    Media file -> mono PCM at the target rate -> int16 -> MP3 blocks -> named file.

    Decoding and resampling are delegated to the injected collaborators. A new
    encoder is built for every run and discarded afterwards.
    """

    def __init__(
        self,
        settings: Optional[AudioSettings] = None,
        decoder: Optional[MediaDecoder] = None,
        resampler: Optional[Resampler] = None,
        encoder_factory: Optional[Callable[[AudioSettings], BlockEncoder]] = None,
    ):
        self.settings = settings or AudioSettings()
        self._decoder = decoder
        self._resampler = resampler
        self.encoder_factory = encoder_factory or EncoderFactory.create
        self.stage = PipelineStage.IDLE
        self.stats = ConversionStats()

    @property
    def decoder(self) -> MediaDecoder:
        if self._decoder is None:
            from ..backends.ffmpeg import FfmpegDecoder
            self._decoder = FfmpegDecoder()
        return self._decoder

    @property
    def resampler(self) -> Resampler:
        if self._resampler is None:
            from ..backends.resample import ScipyResampler
            self._resampler = ScipyResampler()
        return self._resampler

    def _enter(self, stage: PipelineStage, file: BinaryFile) -> None:
        logger.debug(f"[{file.name}] {self.stage.value} -> {stage.value}")
        self.stage = stage

    def _create_encoder(self) -> BlockEncoder:
        check_block_size(self.settings.block_size)
        encoder = self.encoder_factory(self.settings)
        if encoder is None:
            raise ConfigurationError(f"Audio encoder '{self.settings.encoder}' is not available.")
        return encoder

    def _to_fixed_point(self, file: BinaryFile, pcm) -> np.ndarray:
        self._enter(PipelineStage.QUANTIZING, file)
        samples = quantize(pcm.mono())
        self.stats.samples = len(samples)
        logger.info(f"Encoding {len(samples)} samples ({pcm.duration_seconds:.1f}s) at {self.settings.bitrate_kbps} kbps...")
        self._enter(PipelineStage.ENCODING, file)
        return samples

    def _finish(self, file: BinaryFile, chunks: List[bytes], started: float) -> NamedBinaryFile:
        self._enter(PipelineStage.ASSEMBLING, file)
        result = assemble(chunks, file.name, self.settings.media_type)

        block_size = self.settings.block_size
        self.stats.blocks = self.stats.samples // block_size
        tail = self.stats.samples % block_size
        if self.settings.pad_tail and tail:
            self.stats.blocks += 1
        else:
            self.stats.dropped_samples = tail
        self.stats.output_bytes = result.size
        self.stats.elapsed_seconds = time.monotonic() - started

        self._enter(PipelineStage.DONE, file)
        logger.info(f"Converted {file.name} -> {result.name} ({result.size} bytes, {self.stats.blocks} blocks)")
        return result

    def _fail(self, file: BinaryFile, error: Exception) -> None:
        logger.error(f"Conversion of {file.name} failed during {self.stage.value}: {error}")
        self.stage = PipelineStage.FAILED

    def run(self, file: BinaryFile, on_progress: Optional[ProgressCallback] = None) -> NamedBinaryFile:
        """Convert `file` synchronously."""
        started = time.monotonic()
        self.stage = PipelineStage.IDLE
        self.stats = ConversionStats(input_bytes=file.size)
        try:
            # Fail fast before any decoding work
            encoder = self._create_encoder()

            self._enter(PipelineStage.DECODING, file)
            pcm = self.decoder.decode(file.data, file.media_type, file.name)

            self._enter(PipelineStage.RESAMPLING, file)
            pcm = self.resampler.render(pcm, self.settings.sample_rate, self.settings.channels)

            samples = self._to_fixed_point(file, pcm)
            del pcm
            chunks = encode(
                samples,
                encoder,
                block_size=self.settings.block_size,
                on_progress=on_progress,
                progress_interval=self.settings.progress_interval,
                pad_tail=self.settings.pad_tail,
                on_flush=lambda: self._enter(PipelineStage.FLUSHING, file),
            )
            return self._finish(file, chunks, started)
        except Exception as e:
            self._fail(file, e)
            raise

    async def arun(self, file: BinaryFile, on_progress: Optional[ProgressCallback] = None) -> NamedBinaryFile:
        """Convert `file`, awaiting decode/resample off-loop and yielding between progress ticks."""
        started = time.monotonic()
        self.stage = PipelineStage.IDLE
        self.stats = ConversionStats(input_bytes=file.size)
        try:
            encoder = self._create_encoder()

            self._enter(PipelineStage.DECODING, file)
            pcm = await asyncio.to_thread(self.decoder.decode, file.data, file.media_type, file.name)

            self._enter(PipelineStage.RESAMPLING, file)
            pcm = await asyncio.to_thread(self.resampler.render, pcm, self.settings.sample_rate, self.settings.channels)

            samples = self._to_fixed_point(file, pcm)
            del pcm
            chunks = await encode_async(
                samples,
                encoder,
                block_size=self.settings.block_size,
                on_progress=on_progress,
                progress_interval=self.settings.progress_interval,
                pad_tail=self.settings.pad_tail,
                on_flush=lambda: self._enter(PipelineStage.FLUSHING, file),
            )
            return self._finish(file, chunks, started)
        except asyncio.CancelledError:
            logger.info(f"Conversion of {file.name} cancelled during {self.stage.value}")
            self.stage = PipelineStage.FAILED
            raise
        except Exception as e:
            self._fail(file, e)
            raise


def extract_audio(
    file: BinaryFile,
    on_progress: Optional[ProgressCallback] = None,
    settings: Optional[AudioSettings] = None,
) -> NamedBinaryFile:
    """Convert a media file to a 16 kHz mono MP3 with the default ffmpeg/scipy/LAME backends."""
    return ConversionPipeline(settings).run(file, on_progress)


async def extract_audio_async(
    file: BinaryFile,
    on_progress: Optional[ProgressCallback] = None,
    settings: Optional[AudioSettings] = None,
) -> NamedBinaryFile:
    return await ConversionPipeline(settings).arun(file, on_progress)
