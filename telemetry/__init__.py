"""
Telemetry for scripted browser runs.
"""

from .tracing import RunTracer, Span, Trace

__all__ = ["RunTracer", "Span", "Trace"]
