"""Conversion request/response models."""
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

from media_converter.errors import BadRequest


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"

    @property
    def field_name(self) -> str:
        """Multipart field the upload is expected under."""
        return self.value

    @property
    def target_extension(self) -> str:
        return ".webp" if self is MediaType.IMAGE else ".webm"


class VideoEncoderParams(NamedTuple):
    crf: int
    cpu_used: int
    deadline: str


class CompressionQuality(str, Enum):
    """Named VP9 presets, from smallest output to highest fidelity."""

    MAXIMUM = "maximum"
    HIGH = "high"
    BALANCED = "balanced"
    LOW = "low"
    MINIMAL = "minimal"

    @property
    def params(self) -> VideoEncoderParams:
        return _VIDEO_PRESETS[self]

    @property
    def crf(self) -> int:
        return self.params.crf

    @property
    def cpu_used(self) -> int:
        return self.params.cpu_used

    @property
    def deadline(self) -> str:
        return self.params.deadline

    @classmethod
    def parse(cls, value: Optional[str]) -> "CompressionQuality":
        name = (value or "").strip().lower()
        try:
            return cls(name)
        except ValueError:
            allowed = ", ".join(q.value for q in cls)
            raise BadRequest(f"Unknown compression quality '{value}'. Use one of: {allowed}") from None


_VIDEO_PRESETS = {
    CompressionQuality.MAXIMUM: VideoEncoderParams(crf=42, cpu_used=8, deadline="realtime"),
    CompressionQuality.HIGH: VideoEncoderParams(crf=35, cpu_used=6, deadline="realtime"),
    CompressionQuality.BALANCED: VideoEncoderParams(crf=31, cpu_used=4, deadline="good"),
    CompressionQuality.LOW: VideoEncoderParams(crf=27, cpu_used=2, deadline="good"),
    CompressionQuality.MINIMAL: VideoEncoderParams(crf=23, cpu_used=1, deadline="good"),
}


class AudioBitrate(str, Enum):
    KBPS_32 = "32k"
    KBPS_64 = "64k"
    KBPS_96 = "96k"
    KBPS_128 = "128k"
    KBPS_192 = "192k"

    @classmethod
    def parse(cls, value: Optional[str]) -> "AudioBitrate":
        rate = (value or "").strip().lower()
        try:
            return cls(rate)
        except ValueError:
            allowed = ", ".join(b.value for b in cls)
            raise BadRequest(f"Unsupported audio bitrate '{value}'. Use one of: {allowed}") from None


def load_video_defaults(quality: str, audio_bitrate: str) -> tuple[CompressionQuality, AudioBitrate]:
    """Resolve the configured video defaults. A bad value is a deployment error, not a client one."""
    try:
        preset = CompressionQuality((quality or "").strip().lower())
    except ValueError:
        allowed = ", ".join(q.value for q in CompressionQuality)
        raise ValueError(f"DEFAULT_VIDEO_QUALITY={quality!r} is invalid. Use one of: {allowed}") from None
    try:
        bitrate = AudioBitrate((audio_bitrate or "").strip().lower())
    except ValueError:
        allowed = ", ".join(b.value for b in AudioBitrate)
        raise ValueError(f"DEFAULT_AUDIO_BITRATE={audio_bitrate!r} is invalid. Use one of: {allowed}") from None
    return preset, bitrate


@dataclass(frozen=True)
class UploadedAsset:
    """One captured multipart file; lives for a single request."""

    field_name: str
    filename: Optional[str]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ConversionResult:
    success: bool
    message: str
    output_filename: str
    output_bytes_b64: str
    original_size: int
    converted_size: int
    compression_ratio: float

    def to_dict(self) -> dict:
        # Field names are the wire contract the web client reads, for video too.
        return {
            "success": self.success,
            "message": self.message,
            "filename": self.output_filename,
            "webp_data": self.output_bytes_b64,
            "original_size": self.original_size,
            "converted_size": self.converted_size,
            "compression_ratio": self.compression_ratio,
        }
