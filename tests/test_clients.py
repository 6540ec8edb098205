import json

import httpx
import pytest

from oncall_reconciler.clients.errors import (
    CalendarFetchError,
    CalendarUnauthorized,
    OverrideSubmissionError,
    RosterFetchError,
)
from oncall_reconciler.clients.google_calendar import GoogleCalendarClient
from oncall_reconciler.clients.pagerduty import PagerDutyClient
from oncall_reconciler.services.availability import EventBoundary
from oncall_reconciler.services.overrides import Override

from .factories import at, build_slot

SINCE = at("2022-08-30T00:00:00")
UNTIL = at("2022-09-01T00:00:00")

SCHEDULE_PAYLOAD = {
    "schedule": {
        "id": "PSCHED",
        "final_schedule": {
            "rendered_schedule_entries": [
                {
                    "start": "2022-08-30T07:00:00+08:00",
                    "end": "2022-08-30T15:00:00+08:00",
                    "user": {"id": "PA", "summary": "A", "self": "https://api.pagerduty.com/users/PA"},
                },
                {
                    "start": "2022-08-30T15:00:00+08:00",
                    "end": "2022-08-30T23:00:00+08:00",
                    "user": {"summary": "Deleted user"},
                },
                {
                    "start": "2022-08-31T07:00:00+08:00",
                    "end": "2022-08-31T15:00:00+08:00",
                    "user": {"id": "PC", "summary": "C", "self": "https://api.pagerduty.com/users/PC"},
                },
            ]
        },
    }
}


def _override() -> Override:
    return Override(
        original_slot=build_slot("2022-08-30T07:00:00"),
        original_assignee_id="PA",
        original_assignee_email="a@example.com",
        new_assignee_id="PB",
        new_assignee_email="b@example.com",
    )


@pytest.mark.anyio("asyncio")
async def test_pagerduty_roster_skips_unresolvable_users() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/schedules/PSCHED":
            return httpx.Response(200, json=SCHEDULE_PAYLOAD)
        if request.url.path == "/users/PA":
            return httpx.Response(200, json={"user": {"id": "PA", "email": "a@example.com"}})
        return httpx.Response(404, json={"error": {"message": "Not Found"}})

    async with PagerDutyClient("secret", transport=httpx.MockTransport(handler)) as client:
        roster = await client.fetch_roster("PSCHED", SINCE, UNTIL)

    assert [(entry.assignee_id, entry.assignee_email) for entry in roster] == [("PA", "a@example.com")]
    assert roster[0].start == at("2022-08-30T07:00:00")

    schedule_request = requests[0]
    assert schedule_request.headers["Authorization"] == "Token token=secret"
    assert schedule_request.headers["Accept"] == "application/vnd.pagerduty+json;version=2"
    assert schedule_request.url.params["since"] == SINCE.isoformat()
    assert schedule_request.url.params["until"] == UNTIL.isoformat()
    assert schedule_request.url.params["time_zone"] == "UTC"


@pytest.mark.anyio("asyncio")
async def test_pagerduty_schedule_failure_raises() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))

    async with PagerDutyClient("secret", transport=transport) as client:
        with pytest.raises(RosterFetchError):
            await client.fetch_roster("PSCHED", SINCE, UNTIL)


@pytest.mark.anyio("asyncio")
async def test_pagerduty_posts_overrides_for_new_assignee() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/schedules/PSCHED/overrides"
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json=[{"status": 201, "override": {"id": "POVR"}}])

    async with PagerDutyClient("secret", transport=httpx.MockTransport(handler)) as client:
        results = await client.create_overrides("PSCHED", [_override()])

    assert bodies == [
        {
            "overrides": [
                {
                    "start": "2022-08-30T07:00:00+08:00",
                    "end": "2022-08-30T15:00:00+08:00",
                    "user": {"id": "PB", "type": "user_reference"},
                }
            ]
        }
    ]
    assert results == [{"status": 201, "override": {"id": "POVR"}}]


@pytest.mark.anyio("asyncio")
async def test_pagerduty_rejected_overrides_raise() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "bad"}))

    async with PagerDutyClient("secret", transport=transport) as client:
        with pytest.raises(OverrideSubmissionError):
            await client.create_overrides("PSCHED", [_override()])


@pytest.mark.anyio("asyncio")
async def test_calendar_follows_page_tokens() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if "pageToken" not in request.url.params:
            return httpx.Response(
                200,
                json={
                    "items": [
                        {
                            "summary": "Out of office",
                            "visibility": "public",
                            "start": {"date": "2022-08-30"},
                            "end": {"date": "2022-08-31"},
                        }
                    ],
                    "nextPageToken": "page-2",
                },
            )
        return httpx.Response(
            200,
            json={
                "items": [
                    {
                        "summary": "Offsite",
                        "eventType": "outOfOffice",
                        "start": {"dateTime": "2022-08-31T09:00:00+08:00", "timeZone": "Asia/Singapore"},
                        "end": {"dateTime": "2022-08-31T12:00:00+08:00", "timeZone": "Asia/Singapore"},
                    }
                ]
            },
        )

    async with GoogleCalendarClient(
        "token", time_zone="Asia/Singapore", transport=httpx.MockTransport(handler)
    ) as client:
        events = await client.fetch_events("a@example.com", SINCE, UNTIL)

    assert [event.summary for event in events] == ["Out of office", "Offsite"]
    assert events[0].start == EventBoundary(date="2022-08-30")
    assert events[1].event_type == "outOfOffice"
    assert events[1].start == EventBoundary(date_time="2022-08-31T09:00:00+08:00")

    assert len(requests) == 2
    first, second = requests
    assert first.headers["Authorization"] == "Bearer token"
    assert first.url.path.endswith("/events")
    assert first.url.params["singleEvents"] == "true"
    assert first.url.params["timeZone"] == "Asia/Singapore"
    assert first.url.params["timeMin"] == SINCE.isoformat()
    assert second.url.params["pageToken"] == "page-2"


@pytest.mark.anyio("asyncio")
async def test_calendar_unauthorized_token() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"error": "invalid_grant"}))

    async with GoogleCalendarClient("expired", transport=transport) as client:
        with pytest.raises(CalendarUnauthorized):
            await client.check_token()
        with pytest.raises(CalendarUnauthorized):
            await client.fetch_events("a@example.com", SINCE, UNTIL)


@pytest.mark.anyio("asyncio")
async def test_calendar_forbidden_raises_fetch_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(403, json={"error": "forbidden"}))

    async with GoogleCalendarClient("token", transport=transport) as client:
        with pytest.raises(CalendarFetchError) as excinfo:
            await client.fetch_events("a@example.com", SINCE, UNTIL)

    assert excinfo.value.email == "a@example.com"
    assert excinfo.value.status_code == 403


@pytest.mark.anyio("asyncio")
async def test_calendar_check_token_accepts_valid_token() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"items": []}))

    async with GoogleCalendarClient("token", transport=transport) as client:
        await client.check_token()
