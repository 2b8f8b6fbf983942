"""desire-path transcript configuration."""
import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default

# Transcript decoding
# Tool outputs can be large; a single line past this is treated as corrupt input.
MAX_LINE_BYTES = _env_int("DP_MAX_LINE_BYTES", 10 * 1024 * 1024)

# Turn reports
TURN_LENGTH_THRESHOLD = _env_int("DP_TURN_LENGTH_THRESHOLD", 5)

# Logging
LOG_LEVEL = os.getenv("DP_LOG_LEVEL", "INFO").strip().upper() or "INFO"

# Observability
OTEL_ENABLED = _env_bool("DP_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("DP_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("DP_OTEL_SERVICE_NAME", "desire-path-transcripts")
PROM_PORT = _env_int("DP_PROM_PORT", 0)
