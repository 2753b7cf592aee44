from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .errors import PreconditionError

DEFAULT_OUTPUT_DIR = "./transcriptions"
DEFAULT_MAX_CHUNK_SIZE_MB = 25.0
DEFAULT_MODEL = "whisper-1"
DEFAULT_REQUEST_TIMEOUT_SEC = 600.0


@dataclass(slots=True, frozen=True)
class Settings:
    """Run-wide configuration, built once at startup and passed down explicitly."""

    api_key: str = ""
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    max_chunk_size_mb: float = DEFAULT_MAX_CHUNK_SIZE_MB
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    model: str = DEFAULT_MODEL
    request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            api_key=env.get("OPENAI_API_KEY", "").strip(),
            output_dir=Path(env.get("OUTPUT_DIR", "").strip() or DEFAULT_OUTPUT_DIR),
            max_chunk_size_mb=_positive_float(env, "MAX_CHUNK_SIZE_MB", DEFAULT_MAX_CHUNK_SIZE_MB),
            ffmpeg_bin=env.get("FFMPEG_BIN", "").strip() or "ffmpeg",
            ffprobe_bin=env.get("FFPROBE_BIN", "").strip() or "ffprobe",
            model=env.get("OPENAI_TRANSCRIBE_MODEL", "").strip() or DEFAULT_MODEL,
            request_timeout_sec=_positive_float(env, "OPENAI_REQUEST_TIMEOUT_SEC", DEFAULT_REQUEST_TIMEOUT_SEC),
        )

    def require_api_key(self) -> str:
        if not self.api_key:
            raise PreconditionError(
                "OpenAI API key not found. Please set OPENAI_API_KEY in the .env file or as an environment variable."
            )
        return self.api_key


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise PreconditionError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise PreconditionError(f"{name} must be positive, got {raw!r}")
    return value
