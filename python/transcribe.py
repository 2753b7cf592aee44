#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure local package is importable when running from source.
SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from chunkscribe.config import Settings
from chunkscribe.errors import PreconditionError
from chunkscribe.models import TranscriptionOptions
from chunkscribe.pipeline import PipelineRequest, run_pipeline

logger = logging.getLogger("chunkscribe")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=verbose, show_path=verbose)],
        force=True,
    )
    logging.captureWarnings(True)
    if not verbose:
        for noisy in ("httpx", "openai"):
            logging.getLogger(noisy).setLevel(logging.WARNING)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Split an audio file into upload-sized chunks and transcribe it with OpenAI."
    )
    parser.add_argument("-i", "--input", required=True, help="Path to the input audio file")
    parser.add_argument(
        "-o",
        "--output",
        default=str(settings.output_dir),
        help="Output directory for transcriptions (default: %(default)s)",
    )
    parser.add_argument(
        "-m",
        "--maxChunkSize",
        "--max-chunk-size",
        dest="max_chunk_size",
        type=float,
        default=settings.max_chunk_size_mb,
        help="Maximum chunk size in MB (default: %(default)s)",
    )
    parser.add_argument("-l", "--language", help="Language of the audio (ISO-639-1 code)")
    parser.add_argument("-p", "--prompt", help="Prompt to guide the transcription")
    parser.add_argument(
        "-t",
        "--temperature",
        type=float,
        default=0.0,
        help="Sampling temperature for the transcription model (default: %(default)s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def command_transcribe(args: argparse.Namespace, settings: Settings) -> int:
    request = PipelineRequest(
        input_path=Path(args.input).expanduser(),
        output_dir=Path(args.output).expanduser(),
        max_chunk_size_mb=args.max_chunk_size,
        options=TranscriptionOptions(
            language=args.language,
            prompt=args.prompt,
            temperature=args.temperature,
        ),
    )
    asyncio.run(run_pipeline(request, settings))
    logger.info("Transcription complete!")
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    configure_logging()

    try:
        settings = Settings.from_env()
    except PreconditionError as exc:
        logger.error("Error: %s", exc)
        return 1

    try:
        args = build_parser(settings).parse_args(argv)
    except SystemExit as exc:
        # argparse usage errors exit 2; every failure here exits 1
        return 1 if exc.code else 0
    if args.verbose:
        configure_logging(verbose=True)

    try:
        return command_transcribe(args, settings)
    except Exception as exc:  # noqa: BLE001 - report and exit non-zero
        logger.error("Error: %s", exc, exc_info=args.verbose)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
