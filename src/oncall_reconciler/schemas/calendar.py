from pydantic import BaseModel, ConfigDict, Field

from oncall_reconciler.services.availability import CalendarEvent, EventBoundary


class EventTimePayload(BaseModel):
    """Calendar event boundary as sent by the calendar API."""

    model_config = ConfigDict(populate_by_name=True)

    date: str | None = None
    date_time: str | None = Field(default=None, alias="dateTime")
    time_zone: str | None = Field(default=None, alias="timeZone")

    def to_domain(self) -> EventBoundary:
        return EventBoundary(date=self.date, date_time=self.date_time)


class CalendarEventPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str | None = None
    visibility: str | None = None
    event_type: str | None = Field(default=None, alias="eventType")
    start: EventTimePayload | None = None
    end: EventTimePayload | None = None

    def to_domain(self) -> CalendarEvent:
        return CalendarEvent(
            start=self.start.to_domain() if self.start else None,
            end=self.end.to_domain() if self.end else None,
            visibility=self.visibility,
            summary=self.summary,
            event_type=self.event_type,
        )


class CalendarEventListPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[CalendarEventPayload] = Field(default_factory=list)
    next_page_token: str | None = Field(default=None, alias="nextPageToken")
