import asyncio
import os
import re
import shutil
import tempfile
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Iterator, Optional

import ffmpeg
from loguru import logger

from voice_relay.core.errors import ConversionError

SEGMENT_PATTERN = "output%03d.wav"
_SEGMENT_INDEX = re.compile(r"(\d+)(?=\.[^.]*$|$)")


def _stderr_text(err: ffmpeg.Error) -> str:
    stderr = err.stderr or b""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    # ffmpeg prints its banner first, the actual reason is at the tail
    lines = [line for line in stderr.strip().splitlines() if line.strip()]
    return lines[-1] if lines else str(err)


def _remove_quietly(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.warning(f"[audio] could not remove {path}: {e}")


def convert_to_wav(input_path: str, output_path: Optional[str] = None, cmd: str = "ffmpeg") -> str:
    """
    Converts any audio/video file ffmpeg understands into a WAV (16kHz mono PCM).

    The input is left in place. Returns the path of the new file.

    Raises:
        ConversionError: ffmpeg failed or wrote an empty file
    """
    if output_path is None:
        with tempfile.NamedTemporaryFile(delete=False, suffix=".wav") as audio_file:
            output_path = audio_file.name

    stream = (
        ffmpeg
        .input(input_path)
        .output(
            output_path,
            format="wav",
            acodec="pcm_s16le",
            ac=1,
            ar=16000,
        )
        .overwrite_output()
    )

    t0 = time.time()
    try:
        ffmpeg.run(stream, cmd=cmd, capture_stdout=True, capture_stderr=True)
    except ffmpeg.Error as e:
        _remove_quietly(output_path)
        raise ConversionError(f"Audio conversion failed: {_stderr_text(e)}") from e
    except OSError as e:
        # binary missing or not executable
        _remove_quietly(output_path)
        raise ConversionError(f"Audio conversion failed: {e}") from e

    if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
        _remove_quietly(output_path)
        raise ConversionError("Audio conversion produced an empty WAV file.")

    logger.info(
        f"[audio] converted {os.path.basename(input_path)} -> wav "
        f"({os.path.getsize(output_path)} bytes, {int((time.time() - t0) * 1000)} ms)"
    )
    return output_path


def split_audio(
    input_path: str,
    segment_duration: int = 240,
    parent_dir: Optional[str] = None,
    cmd: str = "ffmpeg",
) -> str:
    """
    Cuts a file into consecutive ``segment_duration``-second chunks without re-encoding.

    Chunks land in a freshly created directory as output000.wav, output001.wav, ...
    Cut points fall where the container allows, so lengths are approximate.
    The caller owns the returned directory.
    """
    if parent_dir:
        os.makedirs(parent_dir, exist_ok=True)
    segment_dir = tempfile.mkdtemp(prefix=f"segments_{uuid.uuid4().hex}_", dir=parent_dir)

    stream = ffmpeg.input(input_path).output(
        os.path.join(segment_dir, SEGMENT_PATTERN),
        f="segment",
        segment_time=segment_duration,
        c="copy",
    )

    try:
        ffmpeg.run(stream, cmd=cmd, capture_stdout=True, capture_stderr=True)
    except ffmpeg.Error as e:
        shutil.rmtree(segment_dir, ignore_errors=True)
        raise ConversionError(f"Audio segmentation failed: {_stderr_text(e)}") from e
    except OSError as e:
        shutil.rmtree(segment_dir, ignore_errors=True)
        raise ConversionError(f"Audio segmentation failed: {e}") from e

    logger.info(f"[audio] split {os.path.basename(input_path)} into {segment_dir}")
    return segment_dir


def _segment_sort_key(name: str) -> tuple[int, str]:
    # output999.wav < output1000.wav once the %03d padding overflows
    match = _SEGMENT_INDEX.search(name)
    return (int(match.group(1)) if match else -1, name)


@dataclass
class AudioSegmentSet:
    """Ordered chunks of one source file, each small enough to transcribe on its own."""

    directory: str
    paths: list[str] = field(default_factory=list)

    @classmethod
    def from_directory(cls, directory: str) -> "AudioSegmentSet":
        names = sorted(
            (name for name in os.listdir(directory) if os.path.isfile(os.path.join(directory, name))),
            key=_segment_sort_key,
        )
        return cls(directory=directory, paths=[os.path.join(directory, n) for n in names])

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def cleanup(self) -> None:
        shutil.rmtree(self.directory, ignore_errors=True)


class FormatConverter:
    """
    Runs ffmpeg off the event loop.

    The pool size is the ceiling on simultaneous ffmpeg processes; extra
    requests wait for a free worker.
    """

    def __init__(self, max_workers: int = 4, cmd: str = "ffmpeg", segment_duration: int = 240):
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ffmpeg")
        self._cmd = cmd
        self._segment_duration = segment_duration

    async def convert_to_wav(self, input_path: str, output_path: Optional[str] = None) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._pool, convert_to_wav, input_path, output_path, self._cmd
        )

    async def split_audio(
        self,
        input_path: str,
        segment_duration: Optional[int] = None,
        parent_dir: Optional[str] = None,
    ) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._pool,
            split_audio,
            input_path,
            segment_duration or self._segment_duration,
            parent_dir,
            self._cmd,
        )

    @asynccontextmanager
    async def segmented(
        self,
        input_path: str,
        segment_duration: Optional[int] = None,
        parent_dir: Optional[str] = None,
    ) -> AsyncIterator[AudioSegmentSet]:
        segment_dir = await self.split_audio(input_path, segment_duration, parent_dir)
        segments = AudioSegmentSet.from_directory(segment_dir)
        try:
            yield segments
        finally:
            segments.cleanup()

    def shutdown(self) -> None:
        self._pool.shutdown(wait=False)
