"""Conversion service: validation plus dispatch of blocking work onto a bounded thread pool."""
import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from media_converter.config import MAX_WORKERS
from media_converter.conversion.image import convert_png_to_webp, is_valid_png
from media_converter.conversion.models import (
    AudioBitrate,
    CompressionQuality,
    ConversionResult,
    MediaType,
    UploadedAsset,
)
from media_converter.conversion.results import build_result
from media_converter.conversion.video import FfmpegTranscoder, Transcoder
from media_converter.errors import BadRequest

logger = logging.getLogger("converter.service")

T = TypeVar("T")


class ConversionService:
    """Converts uploads without blocking the event loop; requests share nothing but the pool."""

    def __init__(self, max_workers: int = MAX_WORKERS, transcoder: Optional[Transcoder] = None):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="converter")
        self._transcoder = transcoder or FfmpegTranscoder()
        logger.info("ConversionService initialized with max_workers=%s", max_workers)

    async def _run_blocking(self, fn: Callable[..., T], *args) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args))

    async def convert_image(self, asset: UploadedAsset) -> ConversionResult:
        if not is_valid_png(asset.data):
            logger.error("Invalid PNG file received: %s", asset.filename)
            raise BadRequest("File is not a valid PNG image")

        webp_data = await self._run_blocking(convert_png_to_webp, asset.data)
        result = build_result(
            webp_data,
            asset.size,
            asset.filename,
            MediaType.IMAGE.target_extension,
            "Image converted successfully",
        )
        logger.info(
            "Successfully converted image: %s -> %s",
            asset.filename or "unknown.png", result.output_filename,
        )
        return result

    async def convert_video(
        self,
        asset: UploadedAsset,
        quality: CompressionQuality = CompressionQuality.HIGH,
        audio_bitrate: AudioBitrate = AudioBitrate.KBPS_96,
    ) -> ConversionResult:
        webm_data = await self._run_blocking(self._transcoder.encode, asset.data, quality, audio_bitrate)
        result = build_result(
            webm_data,
            asset.size,
            asset.filename,
            MediaType.VIDEO.target_extension,
            "Video converted successfully",
        )
        logger.info(
            "Successfully converted video: %s -> %s",
            asset.filename or "unknown.mp4", result.output_filename,
        )
        return result

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

