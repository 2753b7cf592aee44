from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(slots=True, frozen=True)
class AudioFile:
    path: Path
    size_bytes: int
    duration_sec: float

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)


@dataclass(slots=True)
class ChunkWindow:
    idx: int
    start_sec: float
    end_sec: float
    path: str = ""

    @property
    def duration_sec(self) -> float:
        return max(0.0, self.end_sec - self.start_sec)

    @property
    def is_planned(self) -> bool:
        """True until the extractor has materialized the window on disk."""
        return not self.path


@dataclass(slots=True, frozen=True)
class TranscriptionOptions:
    language: str | None = None
    prompt: str | None = None
    temperature: float = 0.0

    def as_request_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"temperature": self.temperature}
        if self.language:
            kwargs["language"] = self.language
        if self.prompt:
            kwargs["prompt"] = self.prompt
        return kwargs


@dataclass(slots=True, frozen=True)
class TranscriptEntry:
    time_label: str
    text: str

    def render(self) -> str:
        return f"[{self.time_label}] {self.text}"


@dataclass(slots=True)
class Transcript:
    entries: list[TranscriptEntry] = field(default_factory=list)

    def render(self) -> str:
        return "\n\n".join(entry.render() for entry in self.entries)
