import re
from typing import Iterable

from ..constants import DEFAULT_MEDIA_TYPE, MEDIA_TYPE_EXTENSIONS
from ..core.errors import ConfigurationError
from ..core.models import NamedBinaryFile

# Last "." followed by characters that are neither "." nor "/"
_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def extension_for(declared_type: str) -> str:
    try:
        return MEDIA_TYPE_EXTENSIONS[declared_type.lower()]
    except KeyError:
        raise ConfigurationError(f"No file extension known for media type {declared_type!r}") from None


def derive_output_name(name: str, declared_type: str = DEFAULT_MEDIA_TYPE) -> str:
    """'clip.mp4' -> 'clip.mp3', 'clip.tar.mp4' -> 'clip.tar.mp3'."""
    return _EXTENSION_RE.sub("", name) + extension_for(declared_type)


def assemble(chunks: Iterable[bytes], base_name: str, declared_type: str = DEFAULT_MEDIA_TYPE) -> NamedBinaryFile:
    """Join encoded chunks, in order, into one named file."""
    return NamedBinaryFile(
        name=derive_output_name(base_name, declared_type),
        data=b"".join(chunks),
        media_type=declared_type,
    )
