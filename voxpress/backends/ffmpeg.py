import json
import logging
import mimetypes
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from .base import MediaDecoder
from ..core.errors import ConfigurationError, DecodeError
from ..core.models import MediaInfo, PcmBuffer

logger = logging.getLogger("Voxpress.Ffmpeg")


def _find_binary(env_var: str, default: str) -> str:
    exe = os.environ.get(env_var, default)
    resolved = shutil.which(exe)
    if not resolved:
        raise ConfigurationError(f"{default} not found on PATH. Install ffmpeg or set {env_var} to the full path.")
    return resolved


class FfmpegDecoder(MediaDecoder):
    """Decodes any container ffmpeg understands into float32 PCM at its native rate and layout."""

    def __init__(self, ffmpeg_bin: Optional[str] = None, ffprobe_bin: Optional[str] = None):
        self.ffmpeg_bin = ffmpeg_bin or _find_binary("FFMPEG_BIN", "ffmpeg")
        self.ffprobe_bin = ffprobe_bin or _find_binary("FFPROBE_BIN", "ffprobe")

    def decode(self, data: bytes, media_type: Optional[str] = None, name_hint: Optional[str] = None) -> PcmBuffer:
        if not data:
            raise DecodeError("Input file is empty")

        # Containers like MP4 keep their index at the end, so decode from a seekable file, not a pipe
        suffix = self._guess_suffix(media_type, name_hint)
        with tempfile.TemporaryDirectory(prefix="voxpress-") as tmp:
            source = Path(tmp) / f"input{suffix}"
            source.write_bytes(data)

            stream = self._probe_audio_stream(source)
            sample_rate = int(stream.get("sample_rate") or 0)
            channels = int(stream.get("channels") or 0)
            if sample_rate <= 0 or channels <= 0:
                raise DecodeError(f"Audio stream has no usable sample rate/channel layout: {stream}")

            logger.debug(f"Decoding {name_hint or source.name}: codec={stream.get('codec_name')}, {channels}ch @ {sample_rate} Hz")
            raw = self._run_ffmpeg(source, sample_rate, channels)

        samples = np.frombuffer(raw, dtype="<f4")
        usable = len(samples) - len(samples) % channels
        samples = samples[:usable].reshape(-1, channels)
        return PcmBuffer(samples=samples, sample_rate=sample_rate, channels=channels)

    def probe(self, path: Path) -> MediaInfo:
        """Container and first audio stream facts, from ffprobe."""
        info = self._ffprobe(path, [
            '-show_entries', 'format=duration,format_name,bit_rate,size:stream=codec_type,sample_rate,channels',
        ])
        fmt = info.get('format', {})
        audio = next((s for s in info.get('streams', []) if s.get('codec_type') == 'audio'), {})

        return MediaInfo(
            duration_seconds=float(fmt.get('duration', 0.0) or 0.0),
            format=fmt.get('format_name'),
            bitrate=int(fmt.get('bit_rate', 0) or 0),
            file_size_bytes=int(fmt.get('size', 0) or 0),
            sample_rate=int(audio['sample_rate']) if audio.get('sample_rate') else None,
            channels=audio.get('channels'),
        )

    def _probe_audio_stream(self, path: Path) -> Dict[str, Any]:
        info = self._ffprobe(path, [
            '-select_streams', 'a:0',
            '-show_entries', 'stream=codec_name,sample_rate,channels',
        ])
        streams = info.get('streams') or []
        if not streams:
            raise DecodeError("No audio track found in input")
        return streams[0]

    def _ffprobe(self, path: Path, entries: list) -> Dict[str, Any]:
        cmd = [self.ffprobe_bin, '-v', 'error', *entries, '-of', 'json', str(path)]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            logger.debug(f"FFprobe command failed: {e.stderr}")
            raise DecodeError(f"Unsupported or corrupt media: {(e.stderr or '').strip()[:300]}") from e
        try:
            return json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise DecodeError(f"Unreadable ffprobe output: {e}") from e

    def _run_ffmpeg(self, source: Path, sample_rate: int, channels: int) -> bytes:
        cmd = [
            self.ffmpeg_bin, '-nostdin', '-hide_banner', '-v', 'error',
            '-i', str(source),
            '-vn',                   # No video
            '-map', '0:a:0',         # First audio track only
            '-f', 'f32le',           # Raw float32 little-endian, interleaved
            '-acodec', 'pcm_f32le',
            '-ar', str(sample_rate),
            '-ac', str(channels),
            'pipe:1',
        ]
        proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=False)
        if proc.returncode != 0:
            err = (proc.stderr or b"").decode(errors="ignore").strip()[:300]
            raise DecodeError(f"ffmpeg failed to decode audio: {err}")
        return proc.stdout

    @staticmethod
    def _guess_suffix(media_type: Optional[str], name_hint: Optional[str]) -> str:
        if name_hint and Path(name_hint).suffix:
            return Path(name_hint).suffix.lower()
        if media_type:
            return mimetypes.guess_extension(media_type) or ""
        return ""
