"""Build conversion results and error envelopes."""
import base64
from pathlib import PurePosixPath
from typing import Optional

from media_converter.conversion.models import ConversionResult
from media_converter.errors import AppError, error_body

DEFAULT_STEM = "converted"


def output_filename(filename: Optional[str], target_extension: str) -> str:
    """Replace the upload's extension, whatever its case, with target_extension."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    stem, dot, _ = name.rpartition(".")
    if not dot:
        stem = name
    stem = stem.strip() or DEFAULT_STEM
    return f"{stem}{target_extension}"


def compression_ratio(original_size: int, converted_size: int) -> float:
    """Percentage saved; negative when the output grew."""
    if original_size <= 0:
        return 0.0
    return (1.0 - (converted_size / original_size)) * 100.0


def build_result(
    output: bytes,
    original_size: int,
    filename: Optional[str],
    target_extension: str,
    message: str,
) -> ConversionResult:
    return ConversionResult(
        success=True,
        message=message,
        output_filename=output_filename(filename, target_extension),
        output_bytes_b64=base64.b64encode(output).decode("ascii"),
        original_size=original_size,
        converted_size=len(output),
        compression_ratio=compression_ratio(original_size, len(output)),
    )


def error_response(exc: AppError) -> tuple[int, dict]:
    """(status, body) for an AppError; every variant carries its own status and code."""
    return exc.status_code, error_body(exc.message, exc.code)
