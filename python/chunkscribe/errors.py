from __future__ import annotations


class ChunkscribeError(Exception):
    """Base class for every failure that aborts a transcription run."""


class PreconditionError(ChunkscribeError):
    pass


class ProbeError(ChunkscribeError):
    pass


class ExtractionError(ChunkscribeError):
    def __init__(self, idx: int, start_sec: float, end_sec: float, reason: str = ""):
        self.idx = idx
        self.start_sec = start_sec
        self.end_sec = end_sec
        self.reason = reason
        message = f"Error creating chunk {idx + 1} ({start_sec:.3f}s to {end_sec:.3f}s)"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TranscriptionError(ChunkscribeError):
    def __init__(self, idx: int, reason: str = ""):
        self.idx = idx
        self.reason = reason
        message = f"Error transcribing chunk {idx + 1}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SizeWarning(UserWarning):
    """An extracted chunk is still larger than the configured size ceiling."""
