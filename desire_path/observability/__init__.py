"""Observability helpers."""

from desire_path.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_reconstruction,
    record_parser_failure,
    record_step_outcome,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_reconstruction",
    "record_parser_failure",
    "record_step_outcome",
]
