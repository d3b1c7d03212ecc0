"""Voxpress - media to speech-ready MP3 transcoding."""

__version__ = "0.1.0"
