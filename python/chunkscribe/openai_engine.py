from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Sequence

from .config import Settings
from .errors import PreconditionError, TranscriptionError
from .models import ChunkWindow, TranscriptEntry, TranscriptionOptions
from .timecode import format_time

logger = logging.getLogger(__name__)


def create_client(settings: Settings):
    try:
        from openai import AsyncOpenAI
    except ImportError as exc:  # pragma: no cover - env dependent
        raise PreconditionError("The openai package is missing. Install the project dependencies.") from exc

    return AsyncOpenAI(api_key=settings.require_api_key(), timeout=settings.request_timeout_sec)


def _to_dict(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if hasattr(value, "model_dump"):
        return value.model_dump()  # pydantic style
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return dict(value)


def _response_text(response: Any) -> str:
    if isinstance(response, str):
        return response
    if hasattr(response, "text"):
        text = response.text
    else:
        text = _to_dict(response).get("text")
    return "" if text is None else str(text)


async def transcribe_chunk(
    window: ChunkWindow,
    client,
    options: TranscriptionOptions,
    settings: Settings,
) -> TranscriptEntry:
    if window.is_planned:
        raise TranscriptionError(window.idx, "chunk has not been extracted")

    logger.info(
        "Transcribing chunk: %s to %s...",
        format_time(window.start_sec),
        format_time(window.end_sec),
    )

    try:
        with Path(window.path).open("rb") as audio_file:
            response = await client.audio.transcriptions.create(
                model=settings.model,
                file=audio_file,
                **options.as_request_kwargs(),
            )
    except Exception as exc:  # noqa: BLE001 - provider error typing is broad
        logger.debug("Chunk %d failed", window.idx + 1, exc_info=True)
        raise TranscriptionError(window.idx, str(exc)) from exc

    return TranscriptEntry(time_label=format_time(window.start_sec), text=_response_text(response))


async def transcribe_chunks(
    windows: Sequence[ChunkWindow],
    client,
    options: TranscriptionOptions,
    settings: Settings,
) -> list[TranscriptEntry]:
    """Transcribe every window concurrently; results keep the input order.

    The first failing window fails the whole batch.
    """
    logger.info("Starting transcription of %d chunks...", len(windows))
    tasks = [asyncio.ensure_future(transcribe_chunk(window, client, options, settings)) for window in windows]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        # siblings still hold chunk files open
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
