from datetime import time, timedelta

import pytest
from pydantic import ValidationError

from oncall_reconciler.services.templates import (
    ShiftTemplate,
    ShiftTemplateConfig,
    load_default_shift_templates,
    match_shift_type,
)

from .factories import SGT, TEMPLATES, at


def test_load_default_shift_templates() -> None:
    templates = load_default_shift_templates()

    assert list(templates) == ["AM", "PM"]
    assert templates["AM"].start == time(7, 0)
    assert templates["AM"].duration == timedelta(hours=8)
    assert templates["PM"].start == time(15, 0)


def test_template_config_round_trip_keeps_duration() -> None:
    template = ShiftTemplate.from_config(ShiftTemplateConfig(name="NIGHT", start="23:00", duration_hours=7.5))

    assert template.duration == timedelta(hours=7, minutes=30)
    assert template.to_config().start == "23:00"


def test_template_config_rejects_bad_start() -> None:
    with pytest.raises(ValidationError):
        ShiftTemplateConfig(name="AM", start="7am", duration_hours=8)


def test_match_shift_type_requires_start_and_duration() -> None:
    start = at("2022-08-30T07:00:00")

    assert match_shift_type(start, start + timedelta(hours=8), TEMPLATES, SGT) == "AM"
    assert match_shift_type(start, start + timedelta(hours=12), TEMPLATES, SGT) is None
    assert match_shift_type(at("2022-08-30T09:00:00"), at("2022-08-30T17:00:00"), TEMPLATES, SGT) is None


def test_match_shift_type_compares_in_reference_offset() -> None:
    # 23:00 UTC is 07:00 the next morning at +08:00.
    start = at("2022-08-29T23:00:00+00:00")

    assert match_shift_type(start, start + timedelta(hours=8), TEMPLATES, SGT) == "AM"
