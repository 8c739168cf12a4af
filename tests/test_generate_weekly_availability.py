"""Tests for the weekly availability generation script."""

from __future__ import annotations

import datetime
import importlib.util
import json
from pathlib import Path

import pytest

from bizconfig.db.session import get_sessionmaker
from bizconfig.services import availability_service

SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "generate_weekly_availability.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("generate_weekly_availability", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


@pytest.mark.asyncio
async def test_extend_schedule_is_repeatable(tenant_context, db_url: str, tmp_path: Path) -> None:
    script = _load_script()
    template_path = tmp_path / "week.json"
    template_path.write_text(
        json.dumps(
            [
                {"day_of_week": 6, "start_time": "09:00", "end_time": "10:00", "capacity": 8},
                {"day_of_week": 0, "start_time": "09:00", "end_time": "10:00", "capacity": 8},
            ]
        ),
        encoding="utf-8",
    )
    template = script.load_template(template_path)
    assert [slot.day_of_week for slot in template] == [6, 0]

    kwargs = {
        "tenant_id": tenant_context["tenant_id"],
        "offering_id": tenant_context["offering_id"],
        "template": template,
        "days": 14,
        "start": datetime.date(2024, 1, 15),
        "exclude_dates": [datetime.date(2024, 1, 21)],
    }
    assert await script.extend_schedule(**kwargs) == 3
    assert await script.extend_schedule(**kwargs) == 0

    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        slots = await availability_service.list_slots(
            session,
            tenant_id=tenant_context["tenant_id"],
            offering_id=tenant_context["offering_id"],
            start_date=datetime.date(2024, 1, 15),
            end_date=datetime.date(2024, 1, 28),
        )
    assert [slot.date for slot in slots] == [
        datetime.date(2024, 1, 20),
        datetime.date(2024, 1, 27),
        datetime.date(2024, 1, 28),
    ]
