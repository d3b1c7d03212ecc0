import asyncio
import unittest
from unittest.mock import MagicMock, patch

import numpy as np

from helpers import PassThroughResampler, RecordingEncoder, StaticDecoder, mono_pcm
from voxpress.backends.resample import ScipyResampler
from voxpress.core.errors import ConfigurationError, DecodeError, RenderError
from voxpress.core.models import AudioSettings, BinaryFile, PcmBuffer, PipelineStage
from voxpress.pipeline.base import ConversionPipeline


def make_pipeline(pcm, encoders=None, decoder_error=None, resampler=None, settings=None):
    encoders = encoders if encoders is not None else []

    def factory(_settings):
        encoder = RecordingEncoder()
        encoders.append(encoder)
        return encoder

    return ConversionPipeline(
        settings=settings or AudioSettings(),
        decoder=StaticDecoder(pcm, error=decoder_error),
        resampler=resampler or PassThroughResampler(),
        encoder_factory=factory,
    )


SOURCE = BinaryFile(name="clip.mp4", data=b"fake-media", media_type="video/mp4")


class TestConversionPipeline(unittest.TestCase):
    def test_end_to_end_two_blocks(self):
        encoders = []
        progress = MagicMock()
        pipeline = make_pipeline(mono_pcm(np.zeros(2304)), encoders)

        result = pipeline.run(SOURCE, progress)

        self.assertEqual(result.name, "clip.mp3")
        self.assertEqual(result.media_type, "audio/mp3")
        self.assertEqual(result.data, b"\x01\x02\xff")
        self.assertEqual(encoders[0].calls, ["encode_block", "encode_block", "flush"])
        progress.assert_not_called()
        self.assertEqual(pipeline.stage, PipelineStage.DONE)
        self.assertEqual(pipeline.stats.blocks, 2)
        self.assertEqual(pipeline.stats.dropped_samples, 0)
        self.assertEqual(pipeline.stats.output_bytes, 3)

    def test_stage_sequence(self):
        pipeline = make_pipeline(mono_pcm(np.zeros(2304)))
        with patch.object(pipeline, "_enter", wraps=pipeline._enter) as enter:
            pipeline.run(SOURCE)
        self.assertEqual([c.args[0] for c in enter.call_args_list], [
            PipelineStage.DECODING,
            PipelineStage.RESAMPLING,
            PipelineStage.QUANTIZING,
            PipelineStage.ENCODING,
            PipelineStage.FLUSHING,
            PipelineStage.ASSEMBLING,
            PipelineStage.DONE,
        ])

    def test_encoder_flushed_in_flushing_stage(self):
        stages = []
        encoder = RecordingEncoder()
        original_flush = encoder.flush

        def flush():
            stages.append(pipeline.stage)
            return original_flush()

        encoder.flush = flush
        pipeline = ConversionPipeline(
            decoder=StaticDecoder(mono_pcm(np.zeros(1152))),
            resampler=PassThroughResampler(),
            encoder_factory=lambda _settings: encoder,
        )
        pipeline.run(SOURCE)
        self.assertEqual(stages, [PipelineStage.FLUSHING])

    def test_decoder_receives_file_details(self):
        pipeline = make_pipeline(mono_pcm(np.zeros(10)))
        pipeline.run(SOURCE)
        self.assertEqual(pipeline.decoder.calls, [(10, "video/mp4", "clip.mp4")])

    def test_short_input_records_dropped_tail(self):
        encoders = []
        pipeline = make_pipeline(mono_pcm(np.full(500, 0.25)), encoders)
        result = pipeline.run(SOURCE)
        self.assertEqual(encoders[0].calls, ["flush"])
        self.assertEqual(result.data, b"\xff")
        self.assertEqual(pipeline.stats.dropped_samples, 500)

    def test_pad_tail_setting(self):
        encoders = []
        pipeline = make_pipeline(mono_pcm(np.full(500, 0.25)), encoders, settings=AudioSettings(pad_tail=True))
        pipeline.run(SOURCE)
        self.assertEqual(encoders[0].calls, ["encode_block", "flush"])
        self.assertEqual(int(encoders[0].blocks[0][0]), 8191)
        self.assertEqual(pipeline.stats.dropped_samples, 0)
        self.assertEqual(pipeline.stats.blocks, 1)

    def test_quantized_samples_reach_encoder(self):
        encoders = []
        pipeline = make_pipeline(mono_pcm(np.tile([-1.0, 1.0, 1.5, -1.5], 288)), encoders)
        pipeline.run(SOURCE)
        self.assertEqual(encoders[0].blocks[0][:4].tolist(), [-32768, 32767, 32767, -32768])

    def test_new_encoder_per_run(self):
        encoders = []
        pipeline = make_pipeline(mono_pcm(np.zeros(1152)), encoders)
        pipeline.run(SOURCE)
        pipeline.run(SOURCE)
        self.assertEqual(len(encoders), 2)
        self.assertIsNot(encoders[0], encoders[1])

    def test_decode_error_propagates_unchanged(self):
        error = DecodeError("corrupt")
        pipeline = make_pipeline(mono_pcm([]), decoder_error=error)
        with self.assertRaises(DecodeError) as ctx:
            pipeline.run(SOURCE)
        self.assertIs(ctx.exception, error)
        self.assertEqual(pipeline.stage, PipelineStage.FAILED)

    def test_render_error_propagates(self):
        pipeline = make_pipeline(mono_pcm(np.zeros(10)), resampler=PassThroughResampler(RenderError("nope")))
        with self.assertRaises(RenderError):
            pipeline.run(SOURCE)
        self.assertEqual(pipeline.stage, PipelineStage.FAILED)

    def test_unavailable_encoder_fails_before_decoding(self):
        decoder = StaticDecoder(mono_pcm(np.zeros(2304)))
        pipeline = ConversionPipeline(
            decoder=decoder,
            resampler=PassThroughResampler(),
            encoder_factory=lambda settings: None,
        )
        with self.assertRaises(ConfigurationError):
            pipeline.run(SOURCE)
        self.assertEqual(decoder.calls, [])
        self.assertEqual(pipeline.stage, PipelineStage.FAILED)

    def test_encoder_factory_error_is_reported_verbatim(self):
        def factory(settings):
            raise ConfigurationError("Audio encoder library (lameenc) not installed.")

        pipeline = ConversionPipeline(decoder=StaticDecoder(mono_pcm([])), encoder_factory=factory)
        with self.assertRaises(ConfigurationError) as ctx:
            pipeline.run(SOURCE)
        self.assertEqual(str(ctx.exception), "Audio encoder library (lameenc) not installed.")

    def test_with_real_resampler_stereo_48k(self):
        # 0.144 s of stereo at 48 kHz renders to exactly 2304 mono frames at 16 kHz
        stereo = PcmBuffer(samples=np.zeros((6912, 2), dtype=np.float32), sample_rate=48000, channels=2)
        encoders = []
        pipeline = make_pipeline(stereo, encoders, resampler=ScipyResampler())
        pipeline.run(SOURCE)
        self.assertEqual(encoders[0].calls, ["encode_block", "encode_block", "flush"])


class TestConversionPipelineAsync(unittest.IsolatedAsyncioTestCase):
    async def test_arun_with_progress(self):
        encoders = []
        values = []
        pipeline = make_pipeline(mono_pcm(np.zeros(1152 * 200)), encoders)

        result = await pipeline.arun(SOURCE, values.append)

        self.assertEqual(values, [0.5, 1.0])
        self.assertEqual(len(result.data), 201)
        self.assertEqual(pipeline.stage, PipelineStage.DONE)

    async def test_arun_propagates_decode_error(self):
        pipeline = make_pipeline(mono_pcm([]), decoder_error=DecodeError("bad"))
        with self.assertRaises(DecodeError):
            await pipeline.arun(SOURCE)
        self.assertEqual(pipeline.stage, PipelineStage.FAILED)

    async def test_arun_can_be_cancelled_between_ticks(self):
        pipeline = make_pipeline(mono_pcm(np.zeros(1152 * 1000)))
        task = None

        def cancel_on_first_tick(value):
            task.cancel()

        task = asyncio.ensure_future(pipeline.arun(SOURCE, cancel_on_first_tick))
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertEqual(pipeline.stage, PipelineStage.FAILED)

    async def test_arun_without_callback_can_be_cancelled_while_encoding(self):
        pipeline = make_pipeline(mono_pcm(np.zeros(1152 * 1000)))
        task = asyncio.ensure_future(pipeline.arun(SOURCE))

        for _ in range(1_000_000):
            if pipeline.stage in (PipelineStage.ENCODING, PipelineStage.DONE):
                break
            await asyncio.sleep(0)
        self.assertEqual(pipeline.stage, PipelineStage.ENCODING)

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertEqual(pipeline.stage, PipelineStage.FAILED)

    async def test_arun_stage_sequence(self):
        pipeline = make_pipeline(mono_pcm(np.zeros(1152)))
        with patch.object(pipeline, "_enter", wraps=pipeline._enter) as enter:
            await pipeline.arun(SOURCE)
        stages = [c.args[0] for c in enter.call_args_list]
        self.assertEqual(stages[-3:], [PipelineStage.FLUSHING, PipelineStage.ASSEMBLING, PipelineStage.DONE])


if __name__ == '__main__':
    unittest.main()
