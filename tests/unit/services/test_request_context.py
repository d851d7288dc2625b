"""Unit tests for RequestContext"""

from unittest.mock import patch
from src.app.services.request_context import RequestContext, measure


class TestRequestContext:

    def test_generates_request_id(self):
        assert RequestContext().request_id != RequestContext().request_id

    def test_keeps_given_request_id(self):
        assert RequestContext(request_id="req-1").request_id == "req-1"

    @patch("src.app.services.request_context.time.monotonic")
    def test_measure_records_and_accumulates(self, mock_monotonic):
        """
        Given: Two measured blocks with the same name
        When: Both complete
        Then: Their durations are summed in milliseconds
        """
        mock_monotonic.side_effect = [100.0, 100.0, 100.25, 101.0, 101.5]
        context = RequestContext()

        with context.measure("gateway.charge_customer"):
            pass
        with context.measure("gateway.charge_customer"):
            pass

        assert context.timings == {"gateway.charge_customer": 750.0}

    def test_measure_records_on_exception(self):
        context = RequestContext()

        try:
            with context.measure("store.update"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        assert "store.update" in context.timings

    def test_measure_helper_without_context_is_noop(self):
        with measure(None, "anything"):
            value = 1

        assert value == 1
