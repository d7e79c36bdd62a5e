"""PNG to WebP and MP4 to WebM conversion service."""

__version__ = "0.1.0"
