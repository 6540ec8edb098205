"""Shift type definitions and their bundled defaults."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo
from functools import lru_cache
from importlib import resources
from typing import Mapping

from pydantic import BaseModel, Field, field_validator


class ShiftTemplateConfig(BaseModel):
    name: str
    start: str  # HH:MM
    duration_hours: float = Field(gt=0, le=24)

    @field_validator("start")
    @classmethod
    def validate_start(cls, value: str) -> str:
        datetime.strptime(value, "%H:%M")
        return value


class ShiftTemplateFile(BaseModel):
    shift_templates: list[ShiftTemplateConfig]


@dataclass(frozen=True)
class ShiftTemplate:
    """A named daily slot pattern; every slot of a type shares one duration."""

    name: str
    start: time
    duration: timedelta

    @classmethod
    def from_config(cls, config: ShiftTemplateConfig) -> ShiftTemplate:
        return cls(
            name=config.name,
            start=datetime.strptime(config.start, "%H:%M").time(),
            duration=timedelta(hours=config.duration_hours),
        )

    def to_config(self) -> ShiftTemplateConfig:
        return ShiftTemplateConfig(
            name=self.name,
            start=self.start.strftime("%H:%M"),
            duration_hours=self.duration.total_seconds() / 3600,
        )


def _load_templates_from_json() -> ShiftTemplateFile:
    with resources.files("oncall_reconciler.services.data").joinpath("default_shift_templates.json").open(
        "r", encoding="utf-8"
    ) as handle:
        payload = json.load(handle)
    return ShiftTemplateFile.model_validate(payload)


@lru_cache(maxsize=1)
def load_default_shift_templates() -> dict[str, ShiftTemplate]:
    """Return the shift templates bundled with the application, keyed by name."""

    return {config.name: ShiftTemplate.from_config(config) for config in _load_templates_from_json().shift_templates}


def match_shift_type(
    start: datetime,
    end: datetime,
    templates: Mapping[str, ShiftTemplate],
    tz: tzinfo,
) -> str | None:
    """Return the template name whose start time-of-day and duration both match."""

    local_start = start.astimezone(tz)
    for name, template in templates.items():
        if local_start.time() == template.start and end - start == template.duration:
            return name
    return None
