"""Google Calendar adapter; the bearer token is obtained elsewhere."""

from __future__ import annotations

import logging
from datetime import datetime
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from oncall_reconciler.clients.errors import CalendarFetchError, CalendarUnauthorized
from oncall_reconciler.schemas.calendar import CalendarEventListPayload
from oncall_reconciler.services.availability import CalendarEvent

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.googleapis.com/calendar/v3"


class GoogleCalendarClient:
    def __init__(
        self,
        access_token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        time_zone: str = "UTC",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._time_zone = time_zone
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> GoogleCalendarClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def check_token(self) -> None:
        """Raise :class:`CalendarUnauthorized` when the token is rejected."""

        response = await self._client.get("/users/me/calendarList")
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise CalendarUnauthorized("Calendar access token was rejected")

    async def fetch_events(self, email: str, time_min: datetime, time_max: datetime) -> list[CalendarEvent]:
        """Return every event on *email*'s calendar between *time_min* and *time_max*."""

        params = {
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "timeZone": self._time_zone,
            "singleEvents": "true",
        }
        events: list[CalendarEvent] = []
        while True:
            response = await self._client.get(f"/calendars/{quote(email, safe='@')}/events", params=params)
            if response.status_code == httpx.codes.UNAUTHORIZED:
                raise CalendarUnauthorized(f"Calendar access token was rejected for {email}")
            if response.status_code != httpx.codes.OK:
                raise CalendarFetchError(email, response.status_code)
            try:
                page = CalendarEventListPayload.model_validate(response.json())
            except (ValidationError, ValueError) as exc:
                raise CalendarFetchError(email, response.status_code) from exc

            events.extend(item.to_domain() for item in page.items)
            if not page.next_page_token:
                break
            params["pageToken"] = page.next_page_token

        logger.debug("Fetched %d calendar events for %s", len(events), email)
        return events
