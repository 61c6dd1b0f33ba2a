"""
Base classes for external integrations.

Provides the error hierarchy and the client interface the planner
depends on.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional


class IntegrationError(Exception):
    """Base exception for integration errors."""

    def __init__(self, message: str, provider: str = "", code: Optional[str] = None):
        self.provider = provider
        self.code = code
        super().__init__(message)


class RateLimitError(IntegrationError):
    """Rate limit exceeded."""

    def __init__(
        self,
        message: str,
        provider: str,
        retry_after: Optional[int] = None,
    ):
        self.retry_after = retry_after
        super().__init__(message, provider, "rate_limit")


class AuthenticationError(IntegrationError):
    """API key rejected."""
    pass


class UploadError(IntegrationError):
    """Bulk event upload rejected by the provider."""

    def __init__(self, status_code: int, body: str, provider: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API Error {status_code}: {body}", provider, "upload_failed")


class IntegrationClient(ABC):
    """
    Abstract base class for fitness platform API clients.
    """

    provider: str = "base"
    base_url: str = ""

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("An API key is required")
        self.api_key = api_key

    @abstractmethod
    def get_auth_headers(self) -> Dict[str, str]:
        """Get authorization headers for API requests."""
        pass

    @abstractmethod
    async def get_activities(self, oldest: date, newest: date) -> List[Any]:
        """Get completed activities within a date range."""
        pass

    @abstractmethod
    async def get_activity_streams(
        self,
        activity_id: str,
        stream_types: Optional[List[str]] = None,
    ) -> Dict[str, List[float]]:
        """Get time series streams for one activity, keyed by stream type."""
        pass

    @abstractmethod
    async def get_events(self, oldest: date, newest: date) -> List[Any]:
        """Get planned calendar events within a date range."""
        pass
