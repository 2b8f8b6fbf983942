"""Transcript parsers."""

from desire_path.parsers.events import TranscriptDecodeError
from desire_path.parsers.transcript import parse_transcript_file, reconstruct_turns

__all__ = [
    "TranscriptDecodeError",
    "parse_transcript_file",
    "reconstruct_turns",
]
