"""
Tests for log correlation helpers.
"""

from src.logging_config import (
    SERVICE_NAME,
    _add_service,
    _inject_correlation_ids,
    booth_id_var,
    job_context,
    job_id_var,
    trace_id_var,
)


class TestJobContext:
    def test_binds_and_resets(self):
        with job_context("job-1", "booth-7"):
            assert job_id_var.get() == "job-1"
            assert booth_id_var.get() == "booth-7"

        assert job_id_var.get() == ""
        assert booth_id_var.get() == ""

    def test_missing_booth(self):
        with job_context("job-2", None):
            event = _inject_correlation_ids(None, "info", {"event": "processing_job"})

        assert event["job_id"] == "job-2"
        assert "booth_id" not in event


class TestProcessors:
    def test_injects_only_set_ids(self):
        token = trace_id_var.set("abc123")
        try:
            event = _inject_correlation_ids(None, "info", {"event": "api_request"})
        finally:
            trace_id_var.reset(token)

        assert event == {"event": "api_request", "trace_id": "abc123"}

    def test_explicit_values_win(self):
        with job_context("job-1", "booth-7"):
            event = _inject_correlation_ids(None, "info", {"event": "x", "booth_id": "booth-9"})

        assert event["booth_id"] == "booth-9"
        assert event["job_id"] == "job-1"

    def test_service_name(self):
        assert _add_service(None, "info", {"event": "x"})["service"] == SERVICE_NAME
