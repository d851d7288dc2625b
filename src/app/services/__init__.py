from .unit_of_work import UnitOfWork
from .payment_gateway import PaymentGateway, GatewayResult, GatewayResultStatus
from .validation_service import ValidationService
from .rate_limiter import RateLimiter, RateLimitUsage, rate_limit_identity
from .request_context import RequestContext, measure

__all__ = [
    "UnitOfWork",
    "PaymentGateway",
    "GatewayResult",
    "GatewayResultStatus",
    "ValidationService",
    "RateLimiter",
    "RateLimitUsage",
    "rate_limit_identity",
    "RequestContext",
    "measure",
]
