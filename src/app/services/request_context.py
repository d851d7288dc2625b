"""Request Context

Per-request timing state created by the boundary layer and passed
explicitly to use cases.
"""

import time
import uuid
from contextlib import contextmanager, nullcontext
from typing import ContextManager, Dict, Iterator, Optional


class RequestContext:
    """
    Carries a request ID and the timings of named steps

    Usage:
        context = RequestContext()
        with context.measure("gateway.charge_customer"):
            result = await gateway.charge_customer(...)
        context.elapsed_ms()
    """

    def __init__(self, request_id: Optional[str] = None, operation: Optional[str] = None):
        self.request_id = request_id or uuid.uuid4().hex
        self.operation = operation
        self.started_at = time.monotonic()
        self.timings: Dict[str, float] = {}

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        """Record the duration of the enclosed block in milliseconds

        Repeated names accumulate.
        """
        start = time.monotonic()
        try:
            yield
        finally:
            elapsed = (time.monotonic() - start) * 1000
            self.timings[name] = self.timings.get(name, 0.0) + elapsed

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started_at) * 1000


def measure(context: Optional[RequestContext], name: str) -> ContextManager:
    """context.measure(name), or a no-op when the caller passed no context"""
    if context is None:
        return nullcontext()
    return context.measure(name)
