from .base import ConversionPipeline, extract_audio, extract_audio_async
from .quantize import quantize
from .encode import encode, encode_async, iter_blocks
from .progress import ProgressReporter
from .assemble import assemble, derive_output_name
