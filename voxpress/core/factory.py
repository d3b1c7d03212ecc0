from typing import Type, Dict
from ..backends.base import BlockEncoder
from .errors import ConfigurationError
from .models import AudioSettings

class EncoderFactory:
    _registry: Dict[str, Type[BlockEncoder]] = {}

    @classmethod
    def register(cls, name: str, encoder_cls: Type[BlockEncoder]):
        cls._registry[name] = encoder_cls

    @classmethod
    def get_encoder_class(cls, name: str) -> Type[BlockEncoder]:
        if name not in cls._registry:
            # Lazy load standard encoders
            if name == "lame":
                from ..backends.lame import LameBlockEncoder
                cls.register("lame", LameBlockEncoder)
            else:
                raise ConfigurationError(f"Unknown encoder: {name}")

        return cls._registry[name]

    @classmethod
    def create(cls, settings: AudioSettings) -> BlockEncoder:
        """Build a fresh encoder for one conversion."""
        encoder_cls = cls.get_encoder_class(settings.encoder)
        if settings.encoder == "lame":
            return encoder_cls(
                channels=settings.channels,
                sample_rate=settings.sample_rate,
                bitrate_kbps=settings.bitrate_kbps,
                quality=settings.quality,
            )
        return encoder_cls(settings.channels, settings.sample_rate, settings.bitrate_kbps)
