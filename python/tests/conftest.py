from __future__ import annotations

import asyncio
import json
import subprocess
import types
from pathlib import Path

import pytest

from chunkscribe import audio


class FakeTranscriptions:
    """Async stand-in for ``client.audio.transcriptions``.

    ``delays``, ``failures`` and ``texts`` are keyed by chunk file name.
    """

    def __init__(
        self,
        delays: dict[str, float] | None = None,
        failures: dict[str, Exception] | None = None,
        texts: dict[str, str] | None = None,
    ):
        self.delays = delays or {}
        self.texts = texts or {}
        self.failures = failures or {}
        self.calls: list[dict[str, object]] = []
        self.completed: list[str] = []

    async def create(self, **kwargs):
        name = Path(kwargs["file"].name).name
        payload = kwargs["file"].read()
        self.calls.append({**kwargs, "file": name, "payload": payload})
        await asyncio.sleep(self.delays.get(name, 0))
        if name in self.failures:
            raise self.failures[name]
        self.completed.append(name)
        return types.SimpleNamespace(text=self.texts.get(name, f"text of {name}"))


class FakeClient:
    def __init__(self, **kwargs):
        self.audio = types.SimpleNamespace(transcriptions=FakeTranscriptions(**kwargs))


class FakeMediaTools:
    """Replaces the ffmpeg/ffprobe subprocess runner."""

    def __init__(self, duration: float = 600.0, chunk_bytes: int = 16, fail_on_chunk: int | None = None):
        self.duration = duration
        self.write_output = True
        self.chunk_bytes = chunk_bytes
        self.fail_on_chunk = fail_on_chunk
        self.commands: list[list[str]] = []

    async def __call__(self, cmd: list[str]) -> bytes:
        self.commands.append(cmd)
        if "ffprobe" in cmd[0]:
            return json.dumps({"format": {"duration": str(self.duration)}}).encode("utf-8")
        renders = [c for c in self.commands if "ffmpeg" in c[0]]
        if self.fail_on_chunk is not None and len(renders) == self.fail_on_chunk:
            raise subprocess.CalledProcessError(1, cmd, output=b"", stderr=b"Invalid data found\n")
        if self.write_output:
            Path(cmd[-1]).write_bytes(b"x" * self.chunk_bytes)
        return b""


@pytest.fixture
def media_tools(monkeypatch) -> FakeMediaTools:
    tools = FakeMediaTools()
    monkeypatch.setattr(audio, "run", tools)
    return tools


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "interview.mp3"
    path.write_bytes(b"a" * 3000)
    return path


@pytest.fixture
def make_client():
    return FakeClient
