from __future__ import annotations

from pathlib import Path

SCRATCH_DIR_NAME = ".temp"
TRANSCRIPT_SUFFIX = "_transcription.txt"


def scratch_dir(source: Path) -> Path:
    return source.parent / SCRATCH_DIR_NAME


def ensure_scratch_dir(source: Path) -> Path:
    path = scratch_dir(source)
    path.mkdir(parents=True, exist_ok=True)
    return path


def chunk_path(source: Path, idx: int) -> Path:
    return scratch_dir(source) / f"{source.stem}_chunk{idx + 1}{source.suffix}"


def transcript_path(output_dir: Path, source: Path) -> Path:
    return output_dir / f"{source.stem}{TRANSCRIPT_SUFFIX}"
