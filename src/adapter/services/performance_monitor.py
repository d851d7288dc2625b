"""Performance Monitor

Logs the timings collected on a finished RequestContext.
"""

import logging
from typing import Optional
from config import ApplicationConfig
from src.app.services.request_context import RequestContext

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """
    Reports request duration and per-step timings

    Requests slower than the threshold are logged at warning, others at debug.
    """

    def __init__(self, slow_threshold_ms: Optional[float] = None):
        self.slow_threshold_ms = float(
            slow_threshold_ms
            if slow_threshold_ms is not None
            else ApplicationConfig.SLOW_REQUEST_THRESHOLD_MS
        )

    def report(self, context: RequestContext) -> bool:
        """
        Log a finished request

        Args:
            context: Context of the finished request

        Returns:
            True if the request was slow
        """
        elapsed_ms = context.elapsed_ms()
        steps = ", ".join(f"{name}={ms:.1f}ms" for name, ms in context.timings.items())
        operation = context.operation or "request"

        if elapsed_ms > self.slow_threshold_ms:
            logger.warning(
                f"Slow {operation} {context.request_id}: {elapsed_ms:.1f}ms "
                f"(threshold {self.slow_threshold_ms:.0f}ms) [{steps}]"
            )
            return True

        logger.debug(f"{operation} {context.request_id}: {elapsed_ms:.1f}ms [{steps}]")
        return False
