"""MP4 to WebM conversion through an external ffmpeg process."""
import logging
import os
import subprocess
import tempfile
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol

from media_converter.config import FFMPEG_BINARY, FFMPEG_TIMEOUT_SECONDS
from media_converter.conversion.models import AudioBitrate, CompressionQuality
from media_converter.errors import ProcessingError

logger = logging.getLogger("converter.video")

TEMP_PREFIX = "media_converter_"
STDERR_TAIL_LINES = 20


class Transcoder(Protocol):
    def encode(self, data: bytes, quality: CompressionQuality, audio_bitrate: AudioBitrate) -> bytes:
        ...


@contextmanager
def scoped_temp_path(suffix: str = "", directory: Optional[Path] = None) -> Iterator[Path]:
    """Create a uniquely named empty file and remove it when the block exits, however it exits."""
    fd, name = tempfile.mkstemp(suffix=suffix, prefix=TEMP_PREFIX, dir=directory)
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove temp file %s: %s", path, e)


def build_ffmpeg_command(
    input_path: Path,
    output_path: Path,
    quality: CompressionQuality,
    audio_bitrate: AudioBitrate,
    binary: str = FFMPEG_BINARY,
) -> list[str]:
    """VP9 + Opus in a WebM container; argument order is part of the compatibility contract."""
    return [
        binary,
        "-i", str(input_path),
        "-c:v", "libvpx-vp9",
        "-crf", str(quality.crf),
        "-b:v", "0",
        "-deadline", quality.deadline,
        "-cpu-used", str(quality.cpu_used),
        "-c:a", "libopus",
        "-b:a", audio_bitrate.value,
        "-f", "webm",
        "-y",
        str(output_path),
    ]


def _stderr_tail(stderr: Optional[bytes]) -> str:
    if not stderr:
        return ""
    lines = stderr.decode("utf-8", errors="replace").strip().splitlines()
    return "\n".join(lines[-STDERR_TAIL_LINES:])


class FfmpegTranscoder:
    """Runs ffmpeg over a pair of scoped temp files. Blocking: call it from a worker thread."""

    def __init__(
        self,
        binary: str = FFMPEG_BINARY,
        timeout: Optional[int] = FFMPEG_TIMEOUT_SECONDS,
        temp_dir: Optional[Path] = None,
    ):
        self.binary = binary
        self.timeout = timeout or None
        self.temp_dir = temp_dir

    def encode(self, data: bytes, quality: CompressionQuality, audio_bitrate: AudioBitrate) -> bytes:
        with ExitStack() as stack:
            try:
                in_path = stack.enter_context(scoped_temp_path(".mp4", self.temp_dir))
            except OSError as e:
                raise ProcessingError(f"Failed to create temp input file: {e}") from e
            try:
                in_path.write_bytes(data)
            except OSError as e:
                raise ProcessingError(f"Failed to write input file: {e}") from e
            try:
                out_path = stack.enter_context(scoped_temp_path(".webm", self.temp_dir))
            except OSError as e:
                raise ProcessingError(f"Failed to create temp output file: {e}") from e

            cmd = build_ffmpeg_command(in_path, out_path, quality, audio_bitrate, binary=self.binary)
            logger.debug("Running %s", " ".join(cmd))
            self._run(cmd)

            try:
                out_bytes = out_path.read_bytes()
            except OSError as e:
                raise ProcessingError(f"Failed to read output file: {e}") from e

        logger.info(
            "Converted video (%s, audio %s): %s -> %s bytes",
            quality.value, audio_bitrate.value, len(data), len(out_bytes),
        )
        return out_bytes

    def _run(self, cmd: list[str]) -> None:
        try:
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            logger.error("ffmpeg not found. Install ffmpeg for video conversion.")
            raise ProcessingError(f"Failed to execute ffmpeg: {e}") from e
        except subprocess.TimeoutExpired as e:
            logger.error("ffmpeg timed out after %ss", self.timeout)
            raise ProcessingError(f"ffmpeg timed out after {self.timeout} seconds") from e
        except OSError as e:
            raise ProcessingError(f"Failed to execute ffmpeg: {e}") from e

        if result.returncode != 0:
            logger.error("ffmpeg exited with status %s:\n%s", result.returncode, _stderr_tail(result.stderr))
            raise ProcessingError(f"ffmpeg exited with status: {result.returncode}")
