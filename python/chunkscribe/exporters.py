from __future__ import annotations

import logging
from pathlib import Path

from .models import Transcript
from .paths import transcript_path

logger = logging.getLogger(__name__)


def save_transcription(transcript: Transcript, source: Path, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = transcript_path(output_dir, source)
    output_path.write_text(transcript.render(), encoding="utf-8")
    logger.info("Transcription saved to: %s", output_path)
    return output_path
