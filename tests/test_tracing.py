"""
Tests for RunTracer.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from puppet.config import PuppetConfig
from puppet.controller import PuppetManager
from puppet.errors import ClickFailed, SelectorNotFound
from puppet.generators import positive_int
from telemetry.tracing import RunTracer, Span, Trace, describe_failure


class TestSpan:

    def test_close_records_duration(self):
        span = Span(name="goto")
        span.close()

        assert span.success is True
        assert span.duration_ms >= 0
        assert "failure" not in span.to_dict()

    def test_failure_keeps_envelope_fields(self):
        span = Span(name="simple_click", attributes={"selector": "#menu"})
        span.close(ClickFailed("Could not click selector", selector="#menu", message="Timeout"))

        data = span.to_dict()

        assert data["success"] is False
        assert data["selector"] == "#menu"
        assert data["failure"] == {
            "kind": "ClickFailed",
            "message": "Could not click selector: Timeout",
            "browser_state": "closed",
        }

    def test_plain_exception_described_by_type(self):
        assert describe_failure(RuntimeError("boom")) == {"kind": "RuntimeError", "message": "boom"}


class TestTrace:

    def test_breakdown_sums_by_operation(self):
        trace = Trace(trace_id="run_1", scenario="test")

        for name, duration in [("goto", 100), ("write", 20), ("goto", 75)]:
            span = Span(name=name)
            span.duration_ms = duration
            trace.spans.append(span)

        assert trace.breakdown() == {"goto": 175, "write": 20}

    def test_first_failure_reported(self):
        trace = Trace(trace_id="run_1", scenario="test")
        ok = Span(name="goto")
        ok.close()
        bad = Span(name="search_until_match")
        bad.close(SelectorNotFound("Selector not found in page", candidates_tried=4))
        trace.spans.extend([ok, bad])

        data = trace.to_dict()

        assert data["failed_spans"] == 1
        assert data["failure"]["span"] == "search_until_match"
        assert data["failure"]["kind"] == "SelectorNotFound"
        assert data["failure"]["candidates_tried"] == 4

    def test_no_failure(self):
        assert Trace(trace_id="run_1", scenario="test").to_dict()["failure"] is None


class TestRunTracer:

    def test_start_and_end_run(self):
        tracer = RunTracer()
        trace_id = tracer.start_run("invoice-lookup")
        tracer.add_metadata(proxy_mode=True)

        with tracer.span("goto", url="https://example.com"):
            pass

        result = tracer.end_run()

        assert trace_id.startswith("run_")
        assert result["scenario"] == "invoice-lookup"
        assert result["proxy_mode"] is True
        assert result["spans"][0]["url"] == "https://example.com"
        assert tracer.current_trace is None

    def test_span_reraises_and_records_failure(self):
        tracer = RunTracer()
        tracer.start_run("test")

        with pytest.raises(ClickFailed):
            with tracer.span("simple_click", selector="#menu"):
                raise ClickFailed("Could not click selector", selector="#menu")

        span = tracer.current_trace.spans[0]
        assert span.success is False
        assert span.failure["kind"] == "ClickFailed"

    def test_outside_a_run_nothing_recorded(self):
        tracer = RunTracer()

        with tracer.span("goto") as span:
            assert span is None

        tracer.add_metadata(key="value")
        assert tracer.end_run() is None


class TestManagerSpans:

    @pytest.fixture
    def traced_manager(self):
        tracer = RunTracer()
        tracer.start_run("search")
        texts = {"#row-1": "Credit note", "#row-2": "Receipt", "#row-3": "Invoice 2024"}
        page = MagicMock()
        page.url = "https://billing.example.com/invoices"
        page.query_selector = AsyncMock(side_effect=lambda sel: MagicMock() if sel in texts else None)
        page.eval_on_selector = AsyncMock(side_effect=lambda sel, script: texts[sel])
        puppet = PuppetManager(PuppetConfig(), tracer=tracer)
        puppet.page = page
        return puppet, tracer, texts

    @pytest.mark.asyncio
    async def test_search_span_records_match(self, traced_manager):
        puppet, tracer, _ = traced_manager

        await puppet.search_until_match("#row-{n}", "{n}", positive_int, "invoice")

        span = tracer.end_run()["spans"][0]
        assert span["name"] == "search_until_match"
        assert span["selector"] == "#row-3"
        assert span["candidates_tried"] == 3

    @pytest.mark.asyncio
    async def test_failed_search_span_records_envelope(self, traced_manager):
        puppet, tracer, texts = traced_manager
        del texts["#row-3"]

        with pytest.raises(SelectorNotFound):
            await puppet.search_until_match("#row-{n}", "{n}", positive_int, "invoice")

        data = tracer.end_run()
        assert data["failure"]["span"] == "search_until_match"
        assert data["failure"]["kind"] == "SelectorNotFound"
        assert data["failure"]["browser_state"] == "closed"
        assert data["failure"]["candidates_tried"] == 3
