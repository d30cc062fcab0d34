"""Tests for medical record endpoints and their effect on reverts."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

BASE = "/api/v1/appointments"


async def _completed_appointment(client: AsyncClient, auth_headers: dict) -> str:
    response = await client.post(
        f"{BASE}/",
        json={"patient_id": str(uuid4()), "service_id": str(uuid4())},
        headers=auth_headers,
    )
    appointment_id = response.json()["appointment"]["id"]

    for status in ("scheduled", "checked_in", "in_progress", "completed"):
        response = await client.post(
            f"{BASE}/{appointment_id}/transitions",
            json={"status": status},
            headers=auth_headers,
        )
        assert response.status_code == 200, response.text

    return appointment_id


@pytest.mark.asyncio
async def test_create_and_get_medical_record(
    client: AsyncClient,
    auth_headers: dict,
    operator_id,
) -> None:
    appointment_id = await _completed_appointment(client, auth_headers)

    response = await client.post(
        f"{BASE}/{appointment_id}/medical-records",
        json={"diagnosis": "Acute bronchitis", "treatment_plan": "Rest and fluids"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    record = response.json()
    assert record["appointment_id"] == appointment_id
    assert record["created_by"] == str(operator_id)

    response = await client.get(f"{BASE}/{appointment_id}/medical-records", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["id"] == record["id"]


@pytest.mark.asyncio
async def test_medical_record_requires_completed_appointment(
    client: AsyncClient,
    auth_headers: dict,
) -> None:
    response = await client.post(
        f"{BASE}/",
        json={"patient_id": str(uuid4()), "service_id": str(uuid4())},
        headers=auth_headers,
    )
    appointment_id = response.json()["appointment"]["id"]

    response = await client.post(
        f"{BASE}/{appointment_id}/medical-records",
        json={"diagnosis": "Too early"},
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "Conflict"

    response = await client.post(
        f"{BASE}/{uuid4()}/medical-records",
        json={"diagnosis": "Nobody"},
        headers=auth_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_duplicate_medical_record_conflicts(
    client: AsyncClient,
    auth_headers: dict,
) -> None:
    appointment_id = await _completed_appointment(client, auth_headers)
    url = f"{BASE}/{appointment_id}/medical-records"

    first = await client.post(url, json={"diagnosis": "Migraine"}, headers=auth_headers)
    assert first.status_code == 201

    second = await client.post(url, json={"diagnosis": "Migraine"}, headers=auth_headers)
    assert second.status_code == 409
    assert second.json()["message"] == "Appointment already has a medical record"


@pytest.mark.asyncio
async def test_missing_medical_record(client: AsyncClient, auth_headers: dict) -> None:
    appointment_id = await _completed_appointment(client, auth_headers)

    response = await client.get(f"{BASE}/{appointment_id}/medical-records", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


@pytest.mark.asyncio
async def test_record_blocks_revert(client: AsyncClient, auth_headers: dict) -> None:
    appointment_id = await _completed_appointment(client, auth_headers)

    await client.post(
        f"{BASE}/{appointment_id}/medical-records",
        json={"diagnosis": "Sprained ankle"},
        headers=auth_headers,
    )

    candidate = (
        await client.get(f"{BASE}/{appointment_id}/history/undo-candidate", headers=auth_headers)
    ).json()
    assert candidate["to_status"] == "completed"

    response = await client.post(
        f"{BASE}/{appointment_id}/revert",
        json={"history_entry_id": candidate["id"], "reason": "Completed the wrong visit"},
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "ReversionBlockedByDownstreamRecord"

    appointment = (await client.get(f"{BASE}/{appointment_id}", headers=auth_headers)).json()
    assert appointment["status"] == "completed"
