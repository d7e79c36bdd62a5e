"""Multipart upload ingestion: capture the one expected file field in memory."""
import logging
from typing import Optional

from fastapi import Request
from starlette.datastructures import UploadFile

from media_converter.conversion.models import UploadedAsset
from media_converter.errors import BadRequest, PayloadTooLarge

logger = logging.getLogger("converter.ingest")

CHUNK_SIZE = 1024 * 1024


async def _read_all(file: UploadFile) -> bytes:
    chunks = []
    while chunk := await file.read(CHUNK_SIZE):
        chunks.append(chunk)
    return b"".join(chunks)


async def ingest_upload(request: Request, field_name: str) -> UploadedAsset:
    """
    Parse the multipart body and return the part named field_name.

    Unknown fields are logged and skipped. A missing field or any framing/read
    failure is a BadRequest; the body size guard's PayloadTooLarge passes through.
    """
    filename: Optional[str] = None
    data: Optional[bytes] = None
    try:
        async with request.form() as form:
            for name, value in form.multi_items():
                if name != field_name:
                    logger.warning("Ignored unknown field: %s", name)
                    continue
                if isinstance(value, UploadFile):
                    filename = value.filename or None
                    data = await _read_all(value)
                else:
                    filename = None
                    data = value.encode("utf-8")
                logger.info("Received file: %s, size: %s bytes", filename, len(data))
    except PayloadTooLarge:
        raise
    except Exception as e:
        logger.error("Failed to parse multipart data: %s", e)
        raise BadRequest("Invalid multipart data") from e

    if data is None:
        logger.error("No %s field found in request", field_name)
        raise BadRequest(f"No {field_name} field found")
    return UploadedAsset(field_name=field_name, filename=filename, data=data)
