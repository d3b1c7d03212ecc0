import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import numpy as np
from pydantic import BaseModel, Field, field_validator

from ..constants import (
    DEFAULT_BITRATE_KBPS,
    DEFAULT_BLOCK_SIZE,
    DEFAULT_CHANNELS,
    DEFAULT_ENCODER,
    DEFAULT_MEDIA_TYPE,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_SAMPLE_RATE,
    GRANULE_SIZE,
    MAX_FILE_SIZE_BYTES,
)

class PipelineStage(str, Enum):
    IDLE = "idle"
    DECODING = "decoding"
    RESAMPLING = "resampling"
    QUANTIZING = "quantizing"
    ENCODING = "encoding"
    FLUSHING = "flushing"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"

class AudioSettings(BaseModel):
    sample_rate: int = DEFAULT_SAMPLE_RATE
    channels: int = DEFAULT_CHANNELS
    bitrate_kbps: int = DEFAULT_BITRATE_KBPS
    block_size: int = DEFAULT_BLOCK_SIZE
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL
    # Zero-pad the trailing partial block instead of dropping it
    pad_tail: bool = False
    encoder: str = DEFAULT_ENCODER
    quality: int = 2
    media_type: str = DEFAULT_MEDIA_TYPE

    @field_validator("block_size")
    @classmethod
    def _check_block_size(cls, value: int) -> int:
        if value <= 0 or value % GRANULE_SIZE != 0:
            raise ValueError(f"block_size must be a positive multiple of {GRANULE_SIZE}, got {value}")
        return value

    @field_validator("channels")
    @classmethod
    def _check_mono(cls, value: int) -> int:
        if value != 1:
            raise ValueError(f"only mono output is supported, got {value} channels")
        return value

    @field_validator("sample_rate", "bitrate_kbps", "progress_interval")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"must be positive, got {value}")
        return value

class PathsConfig(BaseModel):
    input: str = "./voxpress-in"
    output: str = "./voxpress-out"

class LimitsConfig(BaseModel):
    max_file_size_bytes: int = MAX_FILE_SIZE_BYTES

class ConfigContext(BaseModel):
    audio: AudioSettings = Field(default_factory=AudioSettings)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    debug: bool = False
    output_mode: str = "standard"

class BinaryFile(BaseModel):
    """Caller-supplied media file."""
    name: str
    data: bytes
    media_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path) -> "BinaryFile":
        media_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, data=path.read_bytes(), media_type=media_type)

class NamedBinaryFile(BaseModel):
    """Encoded output: payload plus derived name and declared media type."""
    name: str
    data: bytes
    media_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    def save(self, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / self.name
        target.write_bytes(self.data)
        return target

class MediaInfo(BaseModel):
    duration_seconds: float | None = None
    format: str | None = None
    bitrate: int | None = None
    file_size_bytes: int | None = None
    sample_rate: int | None = None
    channels: int | None = None

class ConversionStats(BaseModel):
    input_bytes: int = 0
    output_bytes: int = 0
    samples: int = 0
    blocks: int = 0
    dropped_samples: int = 0
    elapsed_seconds: float = 0.0

@dataclass
class PcmBuffer:
    """Float PCM shaped (frames, channels)."""
    samples: np.ndarray
    sample_rate: int
    channels: int

    @property
    def frames(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_seconds(self) -> float:
        return self.frames / self.sample_rate if self.sample_rate else 0.0

    def mono(self) -> np.ndarray:
        """First (and only) channel as a 1-D array."""
        return self.samples[:, 0]
