from __future__ import annotations

import asyncio
import json
import logging
import math
import shutil
import subprocess
import warnings
from pathlib import Path

from .config import Settings
from .errors import ExtractionError, ProbeError, SizeWarning
from .models import AudioFile, ChunkWindow
from .paths import chunk_path, ensure_scratch_dir
from .timecode import file_size_mb, format_time

logger = logging.getLogger(__name__)


async def run(cmd: list[str]) -> bytes:
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    if process.returncode != 0:
        raise subprocess.CalledProcessError(process.returncode, cmd, output=stdout, stderr=stderr)
    return stdout


def _tool_error(exc: Exception) -> str:
    if isinstance(exc, subprocess.CalledProcessError):
        stderr = (exc.stderr or b"").decode("utf-8", errors="replace").strip()
        tail = stderr.splitlines()[-1] if stderr else ""
        return f"{Path(str(exc.cmd[0])).name} exited with status {exc.returncode}" + (f": {tail}" if tail else "")
    return str(exc)


async def probe_duration_seconds(source: Path, settings: Settings) -> float:
    cmd = [
        settings.ffprobe_bin,
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "json",
        str(source),
    ]
    try:
        stdout = await run(cmd)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise ProbeError(f"Could not probe {source}: {_tool_error(exc)}") from exc

    try:
        payload = json.loads(stdout.decode("utf-8"))
        duration = float(payload.get("format", {}).get("duration", 0) or 0)
    except (ValueError, AttributeError) as exc:
        raise ProbeError(f"Unreadable ffprobe output for {source}") from exc
    if duration <= 0:
        raise ProbeError(f"Could not read a duration for {source}")
    return duration


async def probe_audio(source: Path, settings: Settings) -> AudioFile:
    try:
        size_bytes = source.stat().st_size
    except OSError as exc:
        raise ProbeError(f"Could not stat {source}: {exc}") from exc
    duration = await probe_duration_seconds(source, settings)
    return AudioFile(path=source, size_bytes=size_bytes, duration_sec=duration)


def plan_chunks(
    total_duration_sec: float,
    file_size_mb: float,
    max_chunk_size_mb: float,
) -> list[ChunkWindow]:
    """Partition ``[0, total_duration_sec]`` into windows expected to fit the size ceiling.

    Chunk size is assumed proportional to duration. One extra chunk is planned
    on top of the size ratio because codecs do not scale linearly.
    """
    if total_duration_sec <= 0:
        raise ValueError("total_duration_sec must be positive")
    if file_size_mb <= 0 or max_chunk_size_mb <= 0:
        raise ValueError("file and chunk sizes must be positive")

    if file_size_mb <= max_chunk_size_mb:
        return [ChunkWindow(idx=0, start_sec=0.0, end_sec=total_duration_sec)]

    chunk_count = math.ceil(file_size_mb / max_chunk_size_mb) + 1
    chunk_duration = total_duration_sec / chunk_count

    windows: list[ChunkWindow] = []
    for idx in range(chunk_count):
        start = idx * chunk_duration
        if start >= total_duration_sec:
            break
        if idx == chunk_count - 1:
            end = total_duration_sec
        else:
            end = min((idx + 1) * chunk_duration, total_duration_sec)
        windows.append(ChunkWindow(idx=idx, start_sec=start, end_sec=end))
    return windows


async def render_chunk(source: Path, out_path: Path, start_sec: float, duration_sec: float, settings: Settings) -> None:
    cmd = [
        settings.ffmpeg_bin,
        "-y",
        "-i",
        str(source),
        "-vn",
        "-ss",
        f"{start_sec:.3f}",
        "-t",
        f"{duration_sec:.3f}",
        str(out_path),
    ]
    await run(cmd)


async def extract_chunk(
    source: Path,
    window: ChunkWindow,
    max_chunk_size_mb: float,
    settings: Settings,
    *,
    total: int | None = None,
) -> ChunkWindow:
    out_path = chunk_path(source, window.idx)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        await render_chunk(source, out_path, window.start_sec, window.duration_sec, settings)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise ExtractionError(window.idx, window.start_sec, window.end_sec, _tool_error(exc)) from exc

    logger.info(
        "Created chunk %d/%d: %s to %s",
        window.idx + 1,
        total or window.idx + 1,
        format_time(window.start_sec),
        format_time(window.end_sec),
    )

    try:
        chunk_size = file_size_mb(out_path)
    except OSError as exc:
        raise ExtractionError(window.idx, window.start_sec, window.end_sec, f"no output written: {exc}") from exc
    if chunk_size > max_chunk_size_mb:
        warnings.warn(
            f"Chunk {window.idx + 1} is {chunk_size:.2f}MB, which exceeds the {max_chunk_size_mb}MB limit.",
            SizeWarning,
            stacklevel=2,
        )

    window.path = str(out_path)
    return window


async def split_audio_file(source: Path, max_chunk_size_mb: float, settings: Settings) -> list[ChunkWindow]:
    audio = await probe_audio(source, settings)
    windows = plan_chunks(audio.duration_sec, audio.size_mb, max_chunk_size_mb)

    if len(windows) == 1:
        logger.info(
            "File is %.2fMB, which is under the %sMB limit. No splitting required.",
            audio.size_mb,
            max_chunk_size_mb,
        )
        windows[0].path = str(source)
        return windows

    logger.info(
        "File is %.2fMB, which exceeds the %sMB limit. Splitting into chunks...",
        audio.size_mb,
        max_chunk_size_mb,
    )
    logger.info("Audio duration: %s", format_time(audio.duration_sec))
    ensure_scratch_dir(source)

    for window in windows:
        await extract_chunk(source, window, max_chunk_size_mb, settings, total=len(windows))

    logger.info("Split audio into %d chunks.", len(windows))
    return windows


async def cleanup_chunks(windows: list[ChunkWindow]) -> None:
    # A single window is the untouched source file.
    if len(windows) <= 1:
        return

    extracted = [Path(w.path) for w in windows if w.path]
    if not extracted:
        return
    temp_dir = extracted[0].parent
    if not temp_dir.exists():
        return

    logger.info("Cleaning up temporary chunk files...")
    await asyncio.to_thread(shutil.rmtree, temp_dir)
    logger.info("Temporary files cleaned up.")
