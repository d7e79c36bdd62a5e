"""API routes for health, limits and conversion."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from media_converter import __version__
from media_converter.api.ingest import ingest_upload
from media_converter.config import (
    DEFAULT_AUDIO_BITRATE,
    DEFAULT_VIDEO_QUALITY,
    MAX_UPLOAD_SIZE_BYTES,
    SERVICE_NAME,
)
from media_converter.conversion.models import (
    AudioBitrate,
    CompressionQuality,
    MediaType,
    load_video_defaults,
)
from media_converter.conversion.service import ConversionService
from media_converter.errors import utc_timestamp

logger = logging.getLogger("converter.api")
router = APIRouter(tags=["converter"])

# Fails at import, so a misconfigured deployment never starts serving.
DEFAULT_QUALITY, DEFAULT_BITRATE = load_video_defaults(DEFAULT_VIDEO_QUALITY, DEFAULT_AUDIO_BITRATE)


def get_conversion_service(request: Request) -> ConversionService:
    """The service created by the app lifespan; one per application."""
    return request.app.state.conversion_service


@router.get("/health")
def health():
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": __version__,
        "timestamp": utc_timestamp(),
    }


@router.get("/api/limits")
def get_limits():
    """Return upload limits for the client."""
    return {
        "max_upload_size_mb": MAX_UPLOAD_SIZE_BYTES // (1024 * 1024),
        "max_upload_size_bytes": MAX_UPLOAD_SIZE_BYTES,
    }


@router.get("/api/presets")
def get_presets():
    """Video compression presets (name -> encoder parameters) and audio bitrates."""
    return {
        "quality": {
            q.value: {"crf": q.crf, "cpu_used": q.cpu_used, "deadline": q.deadline}
            for q in CompressionQuality
        },
        "audio_bitrates": [b.value for b in AudioBitrate],
        "default_quality": DEFAULT_QUALITY.value,
        "default_audio_bitrate": DEFAULT_BITRATE.value,
    }


@router.post("/api/convert")
async def convert_image(
    request: Request,
    svc: ConversionService = Depends(get_conversion_service),
):
    """Convert a PNG sent as multipart field 'image' to WebP, returned base64 encoded."""
    logger.info("Received image conversion request")
    asset = await ingest_upload(request, MediaType.IMAGE.field_name)
    result = await svc.convert_image(asset)
    return result.to_dict()


@router.post("/api/convert-video")
async def convert_video(
    request: Request,
    quality: Optional[str] = Query(None, description="maximum | high | balanced | low | minimal"),
    audio_bitrate: Optional[str] = Query(None, description="32k | 64k | 96k | 128k | 192k"),
    svc: ConversionService = Depends(get_conversion_service),
):
    """Convert an MP4 sent as multipart field 'video' to WebM (VP9 + Opus)."""
    logger.info("Received video conversion request")
    preset = CompressionQuality.parse(quality) if quality else DEFAULT_QUALITY
    bitrate = AudioBitrate.parse(audio_bitrate) if audio_bitrate else DEFAULT_BITRATE
    asset = await ingest_upload(request, MediaType.VIDEO.field_name)
    result = await svc.convert_video(asset, preset, bitrate)
    return result.to_dict()
