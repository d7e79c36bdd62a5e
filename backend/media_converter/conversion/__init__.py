from .models import AudioBitrate, CompressionQuality, ConversionResult, MediaType, UploadedAsset
from .service import ConversionService

__all__ = [
    "AudioBitrate",
    "CompressionQuality",
    "ConversionResult",
    "ConversionService",
    "MediaType",
    "UploadedAsset",
]
