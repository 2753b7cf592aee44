from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from chunkscribe.config import Settings
from chunkscribe.errors import ExtractionError, PreconditionError, TranscriptionError
from chunkscribe.models import TranscriptionOptions
from chunkscribe.pipeline import PipelineRequest, check_preconditions, run_pipeline

SETTINGS = Settings(api_key="test-key")
TINY_CEILING_MB = 1024 / (1024 * 1024)


def _request(source: Path, tmp_path: Path, max_mb: float = 25.0, **options) -> PipelineRequest:
    return PipelineRequest(
        input_path=source,
        output_dir=tmp_path / "out",
        max_chunk_size_mb=max_mb,
        options=TranscriptionOptions(**options),
    )


def test_pipeline_transcribes_small_file_without_splitting(media_tools, source_file: Path, tmp_path: Path, make_client):
    client = make_client()

    out = asyncio.run(run_pipeline(_request(source_file, tmp_path, prompt="Names: Ada"), SETTINGS, client=client))

    assert out == (tmp_path / "out" / "interview_transcription.txt").resolve()
    assert out.read_text(encoding="utf-8") == "[00:00:00] text of interview.mp3"
    assert client.audio.transcriptions.calls[0]["prompt"] == "Names: Ada"
    assert not (source_file.parent / ".temp").exists()
    assert source_file.exists()


def test_pipeline_splits_transcribes_in_order_and_cleans_up(media_tools, source_file: Path, tmp_path: Path, make_client):
    client = make_client(delays={"interview_chunk1.mp3": 0.03, "interview_chunk2.mp3": 0.01})

    out = asyncio.run(run_pipeline(_request(source_file, tmp_path, TINY_CEILING_MB), SETTINGS, client=client))

    assert out.read_text(encoding="utf-8") == "\n\n".join(
        [
            "[00:00:00] text of interview_chunk1.mp3",
            "[00:02:30] text of interview_chunk2.mp3",
            "[00:05:00] text of interview_chunk3.mp3",
            "[00:07:30] text of interview_chunk4.mp3",
        ]
    )
    assert not (source_file.parent / ".temp").exists()
    assert source_file.read_bytes() == b"a" * 3000


def test_pipeline_writes_nothing_when_one_chunk_fails(media_tools, source_file: Path, tmp_path: Path, make_client):
    client = make_client(failures={"interview_chunk2.mp3": RuntimeError("boom")})

    with pytest.raises(TranscriptionError) as excinfo:
        asyncio.run(run_pipeline(_request(source_file, tmp_path, TINY_CEILING_MB), SETTINGS, client=client))

    assert excinfo.value.idx == 1
    assert not (tmp_path / "out" / "interview_transcription.txt").exists()
    assert not (source_file.parent / ".temp").exists()
    assert source_file.exists()


def test_pipeline_removes_partial_chunks_after_extraction_failure(
    media_tools, source_file: Path, tmp_path: Path, make_client
):
    media_tools.fail_on_chunk = 3
    client = make_client()

    with pytest.raises(ExtractionError) as excinfo:
        asyncio.run(run_pipeline(_request(source_file, tmp_path, TINY_CEILING_MB), SETTINGS, client=client))

    assert excinfo.value.idx == 2
    assert client.audio.transcriptions.calls == []
    assert not (source_file.parent / ".temp").exists()


def test_preconditions_reject_missing_file(tmp_path: Path):
    with pytest.raises(PreconditionError, match="does not exist"):
        check_preconditions(tmp_path / "nope.mp3", SETTINGS)


def test_preconditions_reject_unsupported_extension(tmp_path: Path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello", encoding="utf-8")

    with pytest.raises(PreconditionError, match="not a supported audio file"):
        check_preconditions(notes, SETTINGS)


def test_preconditions_require_api_key(source_file: Path):
    with pytest.raises(PreconditionError, match="API key"):
        check_preconditions(source_file, Settings(api_key=""))


def test_pipeline_checks_preconditions_before_probing(media_tools, tmp_path: Path, make_client):
    with pytest.raises(PreconditionError):
        asyncio.run(run_pipeline(_request(tmp_path / "missing.wav", tmp_path), SETTINGS, client=make_client()))

    assert media_tools.commands == []
