from .unit_of_work import SqlAlchemyUnitOfWork
from .nmi_payment_gateway import NmiPaymentGateway, create_payment_gateway
from .rate_limiter import InMemoryRateLimiter
from .performance_monitor import PerformanceMonitor

__all__ = [
    "SqlAlchemyUnitOfWork",
    "NmiPaymentGateway",
    "create_payment_gateway",
    "InMemoryRateLimiter",
    "PerformanceMonitor",
]
