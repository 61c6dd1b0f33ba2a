"""
Intervals.icu integration for activity history and planned workouts.

Implements:
- Activity listing within a date range
- Activity stream download (time, heart rate, glucose, ...)
- Planned event listing
- Plan upload: delete future workouts, then bulk upsert

Intervals.icu authenticates with HTTP Basic auth, username "API_KEY"
and the athlete's personal key as password.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .base import (
    AuthenticationError,
    IntegrationClient,
    IntegrationError,
    RateLimitError,
    UploadError,
)
from ..models.workouts import WorkoutEvent

logger = logging.getLogger(__name__)

INTERVALS_BASE_URL = "https://intervals.icu/api/v1"

# Every stream the analyzer and the calendar feed consume
DEFAULT_STREAM_TYPES = [
    "time",
    "heartrate",
    "bloodglucose",
    "glucose",
    "ga_smooth",
    "pace",
    "cadence",
    "altitude",
    "watts",
    "power",
]

LOCAL_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class IntervalsActivity:
    """Completed activity as listed by Intervals.icu."""
    id: str
    name: str
    start_date: datetime
    description: str = ""
    start_date_local: Optional[datetime] = None
    type: Optional[str] = None
    distance: Optional[float] = None  # meters
    moving_time: Optional[int] = None  # seconds
    calories: Optional[int] = None
    average_cadence: Optional[float] = None  # single-foot
    average_hr: Optional[int] = None
    max_hr: Optional[int] = None
    icu_training_load: Optional[float] = None
    icu_intensity: Optional[float] = None

    @property
    def local_start(self) -> datetime:
        """Local start time, falling back to the UTC start."""
        return self.start_date_local or self.start_date

    @classmethod
    def from_api_response(cls, data: dict) -> "IntervalsActivity":
        """Parse from Intervals.icu API response."""
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            start_date=_parse_datetime(data["start_date"]),
            description=data.get("description") or "",
            start_date_local=_parse_datetime(data["start_date_local"]) if data.get("start_date_local") else None,
            type=data.get("type"),
            distance=data.get("distance"),
            moving_time=data.get("moving_time"),
            calories=data.get("calories"),
            average_cadence=data.get("average_cadence") or data.get("avg_cadence"),
            average_hr=data.get("average_heartrate") or data.get("average_hr"),
            max_hr=data.get("max_heartrate") or data.get("max_hr"),
            icu_training_load=data.get("icu_training_load"),
            icu_intensity=data.get("icu_intensity"),
        )


@dataclass(frozen=True)
class IntervalsEvent:
    """Planned calendar event (workout, race, note)."""
    id: str
    name: str
    start_date_local: datetime
    category: str
    description: str = ""
    external_id: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: dict) -> "IntervalsEvent":
        """Parse from Intervals.icu API response."""
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            start_date_local=_parse_datetime(data["start_date_local"]),
            category=data.get("category") or "",
            description=data.get("description") or "",
            external_id=data.get("external_id"),
        )


class IntervalsClient(IntegrationClient):
    """
    Client for the Intervals.icu REST API.

    Usage:
        async with IntervalsClient(api_key) as client:
            activities = await client.get_activities(date(2026, 1, 1), date.today())
    """

    provider = "intervals"

    def __init__(
        self,
        api_key: str,
        athlete_id: str = "0",
        base_url: str = INTERVALS_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(api_key)
        self.athlete_id = athlete_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "IntervalsClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def get_auth_headers(self) -> Dict[str, str]:
        """Get Basic auth headers for API requests."""
        token = base64.b64encode(f"API_KEY:{self.api_key}".encode()).decode()
        return {"Authorization": f"Basic {token}", "Accept": "application/json"}

    @property
    def athlete_path(self) -> str:
        return f"/athlete/{self.athlete_id}"

    async def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
    ) -> httpx.Response:
        """
        Send a request, retrying on rate limits.

        Returns the final response without interpreting its status
        beyond 401/403 and 429.

        Raises:
            AuthenticationError: If the API key is rejected
            RateLimitError: If rate limit persists after retries
            IntegrationError: If the request never gets a response
        """
        url = f"{self.base_url}{endpoint}"
        headers = self.get_auth_headers()
        client = await self._get_client()

        for attempt in range(self.max_retries):
            try:
                response = await client.request(
                    method,
                    url,
                    headers=headers,
                    params=params,
                    json=json_data,
                )
            except httpx.HTTPError as e:
                raise IntegrationError(
                    f"Request to Intervals.icu failed: {e}", self.provider, "transport"
                ) from e

            if response.status_code in (401, 403):
                raise AuthenticationError(
                    "API key rejected by Intervals.icu. Check the key and athlete ID.",
                    self.provider,
                )

            if response.status_code == 429:
                retry_after = self._get_retry_after(response)
                if attempt < self.max_retries - 1:
                    logger.warning(f"Rate limited on {endpoint}, retrying in {min(retry_after, 60)}s")
                    await asyncio.sleep(min(retry_after, 60))  # Cap at 60 seconds
                    continue
                raise RateLimitError(
                    "Intervals.icu rate limit exceeded. Please wait before retrying.",
                    self.provider,
                    retry_after,
                )

            return response

        raise IntegrationError("Max retries exceeded", self.provider)

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
    ) -> Any:
        """
        Make an API request and decode the JSON body.

        Raises:
            AuthenticationError: If the API key is rejected
            RateLimitError: If rate limit exceeded after retries
            IntegrationError: For other API errors
        """
        response = await self._send(method, endpoint, params, json_data)

        if response.status_code in (200, 201):
            return response.json() if response.content else {}

        if response.status_code == 204:
            return {}

        if response.status_code == 404:
            raise IntegrationError(f"Resource not found: {endpoint}", self.provider, "not_found")

        raise IntegrationError(
            f"Intervals.icu API error: {response.text or f'HTTP {response.status_code}'}",
            self.provider,
            str(response.status_code),
        )

    def _get_retry_after(self, response: httpx.Response) -> int:
        """Get retry-after time from rate limit response."""
        retry_after = response.headers.get("Retry-After")
        if retry_after and retry_after.isdigit():
            return int(retry_after)
        return 60

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    async def get_activities(self, oldest: date, newest: date) -> List[IntervalsActivity]:
        """
        Get completed activities.

        Args:
            oldest: First day of the range (inclusive)
            newest: Last day of the range (inclusive)

        Returns:
            List of IntervalsActivity objects; unparseable entries are skipped
        """
        response = await self._request(
            "GET",
            f"{self.athlete_path}/activities",
            params={"oldest": oldest.isoformat(), "newest": newest.isoformat()},
        )

        activities = []
        if isinstance(response, list):
            for data in response:
                try:
                    activities.append(IntervalsActivity.from_api_response(data))
                except (KeyError, ValueError, TypeError) as e:
                    logger.debug(f"Skipping unparseable activity {data.get('id')}: {e}")
        return activities

    async def get_activity_streams(
        self,
        activity_id: str,
        stream_types: Optional[List[str]] = None,
    ) -> Dict[str, List[float]]:
        """
        Get activity streams (time series data).

        Args:
            activity_id: Activity ID
            stream_types: Types to fetch; defaults to DEFAULT_STREAM_TYPES

        Returns:
            Dictionary of stream type to samples
        """
        types = ",".join(stream_types or DEFAULT_STREAM_TYPES)
        response = await self._request(
            "GET",
            f"/activity/{activity_id}/streams",
            params={"types": types},
        )

        streams: Dict[str, List[float]] = {}
        if isinstance(response, list):
            for stream in response:
                data = stream.get("data")
                if stream.get("type") and isinstance(data, list):
                    streams[stream["type"]] = data
        return streams

    # -------------------------------------------------------------------------
    # Planned events
    # -------------------------------------------------------------------------

    async def get_events(self, oldest: date, newest: date) -> List[IntervalsEvent]:
        """Get planned calendar events within a date range."""
        response = await self._request(
            "GET",
            f"{self.athlete_path}/events",
            params={"oldest": oldest.isoformat(), "newest": newest.isoformat()},
        )

        events = []
        if isinstance(response, list):
            for data in response:
                try:
                    events.append(IntervalsEvent.from_api_response(data))
                except (KeyError, ValueError, TypeError) as e:
                    logger.debug(f"Skipping unparseable event {data.get('id')}: {e}")
        return events

    async def delete_future_workouts(self, now: Optional[datetime] = None, days: int = 365) -> bool:
        """
        Delete all planned workouts from now until ``days`` ahead.

        Returns:
            True if the provider accepted the delete
        """
        now = now or datetime.now()
        params = {
            "oldest": now.strftime(LOCAL_DATETIME_FORMAT),
            "newest": (now + timedelta(days=days)).strftime(LOCAL_DATETIME_FORMAT),
            "category": "WORKOUT",
        }
        response = await self._send("DELETE", f"{self.athlete_path}/events", params=params)
        if not response.is_success:
            logger.error(f"Delete of future workouts failed with status {response.status_code}")
            return False
        return True

    async def bulk_upsert_events(self, events: Sequence[WorkoutEvent]) -> int:
        """
        Insert or update workouts, matched on external_id.

        Returns:
            Number of events submitted

        Raises:
            UploadError: If the provider rejects the upload
        """
        payload = [e.to_payload() for e in events]
        response = await self._send(
            "POST",
            f"{self.athlete_path}/events/bulk",
            params={"upsert": "true"},
            json_data=payload,
        )
        if not response.is_success:
            logger.error(
                f"Upload of {len(payload)} events failed: {response.status_code}; "
                f"first event: {payload[0] if payload else None}"
            )
            raise UploadError(response.status_code, response.text, self.provider)
        return len(payload)

    async def upload_plan(self, events: Sequence[WorkoutEvent], now: Optional[datetime] = None) -> int:
        """
        Replace all future planned workouts with ``events``.

        The delete runs first; if it fails the upload still goes ahead
        (upsert on external_id keeps re-uploads from duplicating).

        Returns:
            Number of events uploaded

        Raises:
            UploadError: If the bulk upsert is rejected
            IntegrationError: If the bulk upsert gets no response
        """
        logger.info("Deleting all future workouts...")
        try:
            await self.delete_future_workouts(now)
        except IntegrationError as e:
            logger.error(f"Error during deletion phase: {e}")

        count = await self.bulk_upsert_events(events)
        logger.info(f"Uploaded {count} workouts")
        return count
