import unittest
from unittest.mock import MagicMock, patch

from desire_path.observability import otel
from desire_path.parsers import reconstruct_turns


class ObservabilityTests(unittest.TestCase):
    def test_normalize_otlp_endpoint(self) -> None:
        self.assertEqual(otel._normalize_otlp_endpoint("http://h:4318", "/v1/traces"), "http://h:4318/v1/traces")
        self.assertEqual(otel._normalize_otlp_endpoint("http://h:4318/v1/", "/v1/metrics"), "http://h:4318/v1/metrics")
        self.assertEqual(otel._normalize_otlp_endpoint("http://h/v1/traces", "/v1/traces"), "http://h/v1/traces")
        self.assertEqual(otel._normalize_otlp_endpoint("  ", "/v1/traces"), "")

    def test_disabled_span_yields_none(self) -> None:
        with patch.object(otel, "_enabled", False):
            with otel.start_span("x", {"a": 1}) as span:
                self.assertIsNone(span)

    def test_recorders_are_noops_when_disabled(self) -> None:
        with patch.object(otel, "_enabled", False), patch.object(otel, "_prom_enabled", False):
            otel.record_reconstruction("success", 12.5, turns=1, steps=2)
            otel.record_parser_failure("transcript")
            otel.record_step_outcome("Bash", "error", count=3)

    def test_reconstruction_reports_outcome_counts(self) -> None:
        data = (
            b'{"type":"user","message":{"role":"user","content":"go"}}\n'
            b'{"type":"assistant","uuid":"a1","message":{"role":"assistant","content":[{"type":"tool_use","id":"t1","name":"Bash"}]}}\n'
            b'{"type":"user","message":{"role":"user","content":[{"type":"tool_result","tool_use_id":"t1","is_error":true,"content":"x"}]}}\n'
        )
        counter = MagicMock()
        with patch.object(otel, "_enabled", True), patch.object(otel, "_step_outcome_counter", counter), patch.object(
            otel, "_tracer", None
        ):
            reconstruct_turns(data)

        counter.add.assert_called_once_with(1, {"tool": "Bash", "status": "error"})

    def test_decode_failure_records_parser_failure(self) -> None:
        counter = MagicMock()
        with patch.object(otel, "_enabled", True), patch.object(otel, "_parser_failure_counter", counter), patch.object(
            otel, "_tracer", None
        ):
            with self.assertRaises(ValueError):
                reconstruct_turns(b"{oops\n")

        counter.add.assert_called_once_with(1, {"parser": "transcript"})


if __name__ == "__main__":
    unittest.main()
