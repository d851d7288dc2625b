"""Rate Limiter Interface

Request throttling used at the service boundary. Billing use cases do not
depend on it.
"""

import hashlib
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class RateLimitUsage(BaseModel):
    """Usage snapshot for one identity in the current window"""

    count: int = Field(..., description="Requests counted in the current window")
    limit: int = Field(..., description="Requests allowed per window")
    remaining: int = Field(..., description="Requests left in the current window")
    reset_at: datetime = Field(..., description="When the current window ends")


def rate_limit_identity(client_ip: Optional[str], user_agent: Optional[str]) -> str:
    """Derive a fixed-length key from client IP and user agent"""
    raw = f"{client_ip or 'unknown'}|{user_agent or 'unknown'}"
    return "rate_limit_" + hashlib.sha256(raw.encode("utf-8")).hexdigest()


class RateLimiter(ABC):

    @abstractmethod
    def is_allowed(self, identity: str) -> bool:
        """
        Count a request and report whether it fits in the window

        Args:
            identity: Key from rate_limit_identity()

        Returns:
            False once the identity has used up its window
        """
        pass

    @abstractmethod
    def current_usage(self, identity: str) -> RateLimitUsage:
        pass

    @abstractmethod
    def reset(self, identity: str) -> bool:
        """Forget an identity's window. Returns True if one existed."""
        pass
