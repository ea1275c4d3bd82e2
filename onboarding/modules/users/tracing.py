"""
Operation Tracing

Explicit, injectable instrumentation for service operations. Each service
receives a Tracer and wraps every operation in a span; a span that exits with
an exception gets the error recorded before the exception propagates.
"""
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

logger = logging.getLogger("onboarding.trace")


@dataclass
class Span:
    """A single traced operation."""
    name: str
    span_id: str = field(default_factory=lambda: uuid4().hex[:16])
    attributes: Dict[str, Any] = field(default_factory=dict)
    started_at: float = field(default_factory=time.monotonic)
    ended_at: Optional[float] = None
    error: Optional[BaseException] = None

    def set_attribute(self, key: str, value: Any):
        self.attributes[key] = value

    def record_error(self, error: BaseException):
        self.error = error

    @property
    def duration_ms(self) -> Optional[float]:
        if self.ended_at is None:
            return None
        return (self.ended_at - self.started_at) * 1000


class Tracer:
    """Base tracer. Subclasses override on_start/on_end."""

    @contextmanager
    def span(self, name: str, **attributes: Any) -> Iterator[Span]:
        span = Span(name=name, attributes=dict(attributes))
        self.on_start(span)
        try:
            yield span
        except BaseException as e:
            # Cancellation is annotated too, then re-raised untouched.
            span.record_error(e)
            raise
        finally:
            span.ended_at = time.monotonic()
            self.on_end(span)

    def on_start(self, span: Span):
        pass

    def on_end(self, span: Span):
        pass


class NoopTracer(Tracer):
    pass


class LoggingTracer(Tracer):
    """Writes span start/end events to the onboarding.trace logger."""

    def on_start(self, span: Span):
        logger.debug(f"[span:{span.span_id}] start {span.name} {span.attributes}")

    def on_end(self, span: Span):
        if span.error is not None:
            logger.warning(
                f"[span:{span.span_id}] end {span.name} error={type(span.error).__name__}: "
                f"{span.error} ({span.duration_ms:.1f}ms)"
            )
        else:
            logger.debug(f"[span:{span.span_id}] end {span.name} ({span.duration_ms:.1f}ms)")


class RecordingTracer(Tracer):
    """Keeps finished spans in memory; used by tests and local debugging."""

    def __init__(self):
        self.spans: List[Span] = []

    def on_end(self, span: Span):
        self.spans.append(span)

    def names(self) -> List[str]:
        return [s.name for s in self.spans]


default_tracer = LoggingTracer()
