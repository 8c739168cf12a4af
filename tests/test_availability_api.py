"""API tests for availability endpoints."""

from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _generate(client: AsyncClient, headers: dict[str, str], offering_id: str) -> int:
    response = await client.post(
        "/api/v1/availability/generate",
        json={
            "offering_id": offering_id,
            "start_date": "2024-01-15",
            "end_date": "2024-01-19",
            "time_slots": [
                {"day_of_week": day, "start_time": "18:00", "end_time": "20:00", "capacity": 5}
                for day in (1, 3, 5)
            ],
            "exclude_dates": ["2024-01-17"],
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["slots_created"]


async def test_generate_and_list_slots(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["headers"]
    offering_id = str(app_context["offering_id"])

    assert await _generate(client, headers, offering_id) == 2
    assert await _generate(client, headers, offering_id) == 0

    response = await client.get(
        f"/api/v1/offerings/{offering_id}/slots",
        params={"start_date": "2024-01-15", "end_date": "2024-01-21"},
        headers=headers,
    )
    assert response.status_code == 200
    slots = response.json()
    assert [slot["date"] for slot in slots] == ["2024-01-15", "2024-01-19"]
    assert slots[0]["available_capacity"] == 5
    assert slots[0]["booked_count"] == 0


async def test_booking_and_check_flow(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["headers"]
    offering_id = str(app_context["offering_id"])
    await _generate(client, headers, offering_id)

    booking = {
        "offering_id": offering_id,
        "date": "2024-01-15",
        "start_time": "18:00",
        "delta": 3,
    }
    first = await client.post("/api/v1/availability/bookings", json=booking, headers=headers)
    assert first.status_code == 200, first.text
    assert first.json()["booked_count"] == 3

    second = await client.post("/api/v1/availability/bookings", json=booking, headers=headers)
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "INVALID_BOOKING_COUNT"

    check = await client.post(
        "/api/v1/availability/check",
        json={"offering_id": offering_id, "date": "2024-01-15", "quantity": 3},
        headers=headers,
    )
    assert check.status_code == 200
    data = check.json()
    assert data["is_available"] is False
    assert data["next_available_date"] == "2024-01-19"
    assert len(data["suggested_alternatives"]) == 1

    check = await client.post(
        "/api/v1/availability/check",
        json={"offering_id": offering_id, "date": "2024-01-15", "quantity": 2},
        headers=headers,
    )
    assert check.json()["is_available"] is True
    assert check.json()["available_slots"][0]["available_capacity"] == 2


async def test_closing_a_slot(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["headers"]
    offering_id = str(app_context["offering_id"])
    await _generate(client, headers, offering_id)

    response = await client.patch(
        "/api/v1/availability/slots",
        json={
            "offering_id": offering_id,
            "date": "2024-01-19",
            "start_time": "18:00",
            "is_available": False,
        },
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["is_available"] is False

    check = await client.post(
        "/api/v1/availability/check",
        json={"offering_id": offering_id, "date": "2024-01-19"},
        headers=headers,
    )
    assert check.json()["is_available"] is False
    assert check.json()["next_available_date"] is None


async def test_availability_errors(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["headers"]
    offering_id = str(app_context["offering_id"])

    invalid = await client.post(
        "/api/v1/availability/generate",
        json={
            "offering_id": offering_id,
            "start_date": "2024-01-19",
            "end_date": "2024-01-15",
            "time_slots": [
                {"day_of_week": 1, "start_time": "18:00", "end_time": "20:00", "capacity": 5}
            ],
        },
        headers=headers,
    )
    assert invalid.status_code == 422
    assert invalid.json()["detail"]["code"] == "AVAILABILITY_VALIDATION_FAILED"

    missing = await client.post(
        "/api/v1/availability/bookings",
        json={
            "offering_id": offering_id,
            "date": "2024-01-16",
            "start_time": "18:00",
            "delta": 1,
        },
        headers=headers,
    )
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "AVAILABILITY_SLOT_NOT_FOUND"

    bad_range = await client.get(
        f"/api/v1/offerings/{offering_id}/slots",
        params={"start_date": "2024-01-20", "end_date": "2024-01-10"},
        headers=headers,
    )
    assert bad_range.status_code == 422
