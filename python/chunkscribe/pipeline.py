from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from .audio import cleanup_chunks, split_audio_file
from .config import Settings
from .errors import PreconditionError
from .exporters import save_transcription
from .models import ChunkWindow, Transcript, TranscriptionOptions
from .openai_engine import create_client, transcribe_chunks
from .paths import scratch_dir
from .timecode import is_audio_file

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PipelineRequest:
    input_path: Path
    output_dir: Path
    max_chunk_size_mb: float
    options: TranscriptionOptions = field(default_factory=TranscriptionOptions)


def check_preconditions(input_path: Path, settings: Settings) -> None:
    if not input_path.is_file():
        raise PreconditionError(f"Input file does not exist: {input_path}")
    if not is_audio_file(input_path):
        raise PreconditionError(f"Input file is not a supported audio file: {input_path}")
    settings.require_api_key()


async def run_pipeline(request: PipelineRequest, settings: Settings, client=None) -> Path:
    """Split, transcribe and assemble one audio file. Returns the transcript path.

    Scratch chunks are removed on every exit path; a failed run writes no transcript.
    """
    check_preconditions(request.input_path, settings)
    if request.max_chunk_size_mb <= 0:
        raise PreconditionError(f"Maximum chunk size must be positive, got {request.max_chunk_size_mb}")

    output_dir = request.output_dir.resolve()
    if client is None:
        client = create_client(settings)

    logger.info("Processing audio file: %s", request.input_path)
    logger.info("Output directory: %s", output_dir)
    logger.info("Maximum chunk size: %sMB", request.max_chunk_size_mb)

    temp_dir = scratch_dir(request.input_path)
    temp_dir_existed = temp_dir.exists()
    windows: list[ChunkWindow] = []
    try:
        windows = await split_audio_file(request.input_path, request.max_chunk_size_mb, settings)
        entries = await transcribe_chunks(windows, client, request.options, settings)
        return save_transcription(Transcript(entries), request.input_path, output_dir)
    finally:
        if windows:
            await cleanup_chunks(windows)
        elif not temp_dir_existed and temp_dir.exists():
            # splitting failed part way through
            await asyncio.to_thread(shutil.rmtree, temp_dir)
