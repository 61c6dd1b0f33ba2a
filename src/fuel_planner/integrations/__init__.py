"""
External integrations for the Fuel Planner.

Provides the Intervals.icu client used for activity history,
activity streams and plan upload.
"""

from .base import (
    AuthenticationError,
    IntegrationClient,
    IntegrationError,
    RateLimitError,
    UploadError,
)
from .intervals import (
    DEFAULT_STREAM_TYPES,
    IntervalsActivity,
    IntervalsClient,
    IntervalsEvent,
)

__all__ = [
    # Base classes
    "AuthenticationError",
    "IntegrationClient",
    "IntegrationError",
    "RateLimitError",
    "UploadError",
    # Intervals.icu
    "DEFAULT_STREAM_TYPES",
    "IntervalsActivity",
    "IntervalsClient",
    "IntervalsEvent",
]
