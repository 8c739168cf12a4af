"""API tests for pricing rule and calculation endpoints."""

from __future__ import annotations

import uuid
from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


def _happy_hour_payload(offering_id: str) -> dict[str, Any]:
    return {
        "offering_id": offering_id,
        "name": "Happy hour",
        "pricing_type": "time_based",
        "conditions": {
            "time_slots": [
                {"day_of_week": 1, "start_time": "15:00", "end_time": "18:00"}
            ]
        },
        "pricing": {"price_modifier": "-20", "modifier_type": "percentage"},
        "metadata": {"channel": "dine-in"},
    }


async def _create_rule(
    client: AsyncClient, headers: dict[str, str], offering_id: str, payload: dict[str, Any]
) -> dict[str, Any]:
    response = await client.post(
        f"/api/v1/offerings/{offering_id}/pricing-rules", json=payload, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_pricing_rule_lifecycle(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["headers"]
    offering_id = str(app_context["offering_id"])

    rule = await _create_rule(client, headers, offering_id, _happy_hour_payload(offering_id))
    assert rule["is_active"] is True
    assert rule["metadata"] == {"channel": "dine-in"}
    assert rule["pricing_type"] == "time_based"

    list_resp = await client.get(
        f"/api/v1/offerings/{offering_id}/pricing-rules", headers=headers
    )
    assert list_resp.status_code == 200
    assert [item["id"] for item in list_resp.json()] == [rule["id"]]

    patch_resp = await client.patch(
        f"/api/v1/pricing-rules/{rule['id']}",
        json={"priority": 3, "name": "Late happy hour"},
        headers=headers,
    )
    assert patch_resp.status_code == 200
    assert patch_resp.json()["priority"] == 3
    assert patch_resp.json()["name"] == "Late happy hour"

    delete_resp = await client.delete(
        f"/api/v1/pricing-rules/{rule['id']}", headers=headers
    )
    assert delete_resp.status_code == 204

    get_resp = await client.get(f"/api/v1/pricing-rules/{rule['id']}", headers=headers)
    assert get_resp.status_code == 200
    assert get_resp.json()["is_active"] is False

    list_resp = await client.get(
        f"/api/v1/offerings/{offering_id}/pricing-rules", headers=headers
    )
    assert list_resp.json() == []


async def test_calculate_price_endpoint(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["headers"]
    offering_id = str(app_context["offering_id"])
    rule = await _create_rule(client, headers, offering_id, _happy_hour_payload(offering_id))

    response = await client.post(
        "/api/v1/pricing/calculate",
        json={
            "offering_id": offering_id,
            "quantity": 1,
            "date": "2024-01-15",
            "time": "16:00",
            "variant_id": str(app_context["spicy_variant_id"]),
        },
        headers=headers,
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["currency"] == "USD"
    assert float(data["base_price"]) == pytest.approx(22.0)
    assert float(data["final_price"]) == pytest.approx(17.6)
    assert data["applied_rules"] == [
        {
            "rule_id": rule["id"],
            "rule_name": "Happy hour",
            "price_modifier": "-4.40",
            "modifier_type": "percentage",
        }
    ]
    assert float(data["breakdown"]["discounts"]) == pytest.approx(4.4)
    assert float(data["breakdown"]["total"]) == pytest.approx(17.6)


async def test_invalid_rule_returns_validation_details(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["headers"]
    offering_id = str(app_context["offering_id"])

    response = await client.post(
        f"/api/v1/offerings/{offering_id}/pricing-rules",
        json={
            "offering_id": offering_id,
            "name": "No tiers",
            "pricing_type": "tiered",
            "pricing": {"tiers": []},
        },
        headers=headers,
    )
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["code"] == "PRICING_RULE_VALIDATION_FAILED"
    assert detail["details"] == ["Tiered pricing requires at least one tier"]


async def test_unknown_resources_return_not_found(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["headers"]
    missing = str(uuid.uuid4())

    rule_resp = await client.get(f"/api/v1/pricing-rules/{missing}", headers=headers)
    assert rule_resp.status_code == 404
    assert rule_resp.json()["detail"]["code"] == "PRICING_RULE_NOT_FOUND"

    calc_resp = await client.post(
        "/api/v1/pricing/calculate", json={"offering_id": missing}, headers=headers
    )
    assert calc_resp.status_code == 404
    assert calc_resp.json()["detail"]["code"] == "OFFERING_NOT_FOUND"

    other_tenant = {"X-Tenant-ID": str(uuid.uuid4())}
    list_resp = await client.get(
        f"/api/v1/offerings/{app_context['offering_id']}/pricing-rules",
        headers=other_tenant,
    )
    assert list_resp.status_code == 404


async def test_tenant_header_is_required(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    offering_id = str(app_context["offering_id"])

    missing = await client.get(f"/api/v1/offerings/{offering_id}/pricing-rules")
    assert missing.status_code == 422

    malformed = await client.get(
        f"/api/v1/offerings/{offering_id}/pricing-rules",
        headers={"X-Tenant-ID": "not-a-uuid"},
    )
    assert malformed.status_code == 400


async def test_body_offering_must_match_path(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = app_context["headers"]
    offering_id = str(app_context["offering_id"])

    response = await client.post(
        f"/api/v1/offerings/{uuid.uuid4()}/pricing-rules",
        json=_happy_hour_payload(offering_id),
        headers=headers,
    )
    assert response.status_code == 422


async def test_oversized_quantity_is_rejected(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/pricing/calculate",
        json={"offering_id": str(app_context["offering_id"]), "quantity": 10**27},
        headers=app_context["headers"],
    )
    assert response.status_code == 422
