"""
Run tracing - one trace per scenario run, one span per browser operation.

A failed span keeps the failure envelope of the error that ended it (kind,
browser state, candidates tried), so the trace of a broken run tells which
operation failed and whether the browser was still open afterwards.
"""

import time
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

# Envelope fields copied from a failing error onto its span
FAILURE_FIELDS = ("browser_state", "candidates_tried")


def describe_failure(error: BaseException) -> Dict[str, Any]:
    """Short failure record for a span, built from a PuppetError envelope when there is one."""
    failure: Dict[str, Any] = {
        "kind": getattr(error, "kind", type(error).__name__),
        "message": str(error),
    }
    for name in FAILURE_FIELDS:
        value = getattr(error, name, None)
        if value is not None:
            failure[name] = value
    return failure


@dataclass
class Span:
    """One traced browser operation."""
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)
    duration_ms: float = 0
    failure: Optional[Dict[str, Any]] = None

    @property
    def success(self) -> bool:
        return self.failure is None

    def close(self, error: Optional[BaseException] = None) -> None:
        self.duration_ms = (time.perf_counter() - self.started) * 1000
        if error is not None:
            self.failure = describe_failure(error)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "duration_ms": round(self.duration_ms, 2),
            "success": self.success,
            **self.attributes,
        }
        if self.failure:
            data["failure"] = self.failure
        return data


@dataclass
class Trace:
    """Spans of one scenario run, in execution order."""
    trace_id: str
    scenario: str
    started: float = field(default_factory=time.perf_counter)
    total_ms: float = 0
    spans: List[Span] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def finish(self) -> None:
        self.total_ms = (time.perf_counter() - self.started) * 1000

    @property
    def failed_spans(self) -> List[Span]:
        return [s for s in self.spans if not s.success]

    def breakdown(self) -> Dict[str, float]:
        """Milliseconds spent per operation name."""
        totals: Dict[str, float] = {}
        for span in self.spans:
            totals[span.name] = totals.get(span.name, 0) + span.duration_ms
        return {name: round(ms, 2) for name, ms in totals.items()}

    def to_dict(self) -> Dict[str, Any]:
        failed = self.failed_spans
        return {
            "trace_id": self.trace_id,
            "scenario": self.scenario,
            "total_ms": round(self.total_ms, 2),
            "spans": [s.to_dict() for s in self.spans],
            "breakdown": self.breakdown(),
            "failed_spans": len(failed),
            # The first failure is the one that stopped the run
            "failure": {"span": failed[0].name, **failed[0].failure} if failed else None,
            **self.metadata,
        }


class RunTracer:
    """
    Tracer shared by a ScenarioRunner and its PuppetManager.

    Usage:
        tracer = RunTracer()
        tracer.start_run("invoice-lookup")

        with tracer.span("goto", url="https://example.com"):
            await page.goto("https://example.com")

        trace = tracer.end_run()

    Outside a run, span() yields None and records nothing, so a manager used
    on its own does not need a run.
    """

    def __init__(self):
        self.current_trace: Optional[Trace] = None
        self._runs = 0

    def start_run(self, scenario: str) -> str:
        self._runs += 1
        trace_id = f"run_{int(time.time() * 1000)}_{self._runs}"
        self.current_trace = Trace(trace_id=trace_id, scenario=scenario)
        logger.debug(f"Started trace {trace_id} for {scenario}")
        return trace_id

    @contextmanager
    def span(self, name: str, **attributes) -> Iterator[Optional[Span]]:
        trace = self.current_trace
        if trace is None:
            yield None
            return

        span = Span(name=name, attributes=attributes)
        try:
            yield span
        except Exception as e:
            span.close(e)
            raise
        else:
            span.close()
        finally:
            trace.spans.append(span)

    def add_metadata(self, **metadata) -> None:
        if self.current_trace:
            self.current_trace.metadata.update(metadata)

    def end_run(self) -> Optional[Dict[str, Any]]:
        """Finish the current trace and return it as a dict."""
        trace = self.current_trace
        if trace is None:
            return None

        trace.finish()
        self.current_trace = None
        data = trace.to_dict()

        logger.info(
            f"Run {data['trace_id']} finished in {data['total_ms']:.0f}ms "
            f"({len(trace.spans)} spans, {data['failed_spans']} failed)"
        )
        if data["failure"]:
            logger.warning(f"Run {data['trace_id']} stopped at {data['failure']['span']}: "
                           f"{data['failure']['kind']}")
        return data
