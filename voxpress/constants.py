"""Constants used throughout the Voxpress application."""

# Audio target format
DEFAULT_SAMPLE_RATE = 16000
DEFAULT_CHANNELS = 1
DEFAULT_BITRATE_KBPS = 64
DEFAULT_ENCODER = "lame"
DEFAULT_MEDIA_TYPE = "audio/mp3"

# Encoder framing
GRANULE_SIZE = 576  # MP3 granule, block sizes must be a multiple of this
DEFAULT_BLOCK_SIZE = 1152
DEFAULT_PROGRESS_INTERVAL = 100  # blocks between progress notifications

# Quantization
INT16_NEGATIVE_SCALE = 0x8000
INT16_POSITIVE_SCALE = 0x7FFF

# Declared media type -> output extension
MEDIA_TYPE_EXTENSIONS = {
    "audio/mp3": ".mp3",
    "audio/mpeg": ".mp3",
}

# Caller-side limits
MAX_FILE_SIZE_BYTES = 1024 * 1024 * 1024  # 1 GiB

# Timeouts and intervals (in seconds)
FILE_WAIT_TIMEOUT = 60
FILE_STABILIZATION_CHECK_INTERVAL = 1

# File extensions accepted by the watcher and the CLI
SUPPORTED_EXTENSIONS = {
    '.mp3', '.wav', '.ogg', '.m4a', '.aac', '.flac', '.opus',
    '.mp4', '.mov', '.mkv', '.webm', '.m4v', '.avi',
}
