"""
CaseDesk - Case Event & Important Date Tests
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient


# =============================================================================
# Events
# =============================================================================

@pytest.mark.anyio
async def test_event_crud(auth_client: AsyncClient, legal_case):
    url = f"/api/legal-cases/{legal_case['id']}/events"
    response = await auth_client.post(url, json={"title": "Admisión", "date": "2024-01-16"})
    assert response.status_code == 201
    event = response.json()["event"]
    assert event["user"]["name"] == "Test Lawyer"

    await auth_client.post(url, json={"title": "Citación", "description": "Cartel", "date": "2024-02-01"})
    response = await auth_client.get(url)
    assert [e["title"] for e in response.json()["events"]] == ["Citación", "Admisión"]

    response = await auth_client.put(f"{url}/{event['id']}", json={"title": "Admisión de la demanda", "date": "2024-01-17"})
    assert response.json()["event"]["date"] == "2024-01-17"

    response = await auth_client.delete(f"{url}/{event['id']}")
    assert response.json()["message"] == "Evento eliminado correctamente."
    response = await auth_client.get(url)
    assert len(response.json()["events"]) == 1


@pytest.mark.anyio
async def test_event_belongs_to_its_case(auth_client: AsyncClient, legal_case, case_type):
    response = await auth_client.post("/api/legal-cases", json={
        "code": "EXP-OTRO", "entry_date": "2024-01-01", "case_type_id": case_type["id"],
    })
    other_id = response.json()["legal_case"]["id"]
    response = await auth_client.post(f"/api/legal-cases/{other_id}/events", json={"title": "X", "date": "2024-01-02"})
    event_id = response.json()["event"]["id"]

    response = await auth_client.put(
        f"/api/legal-cases/{legal_case['id']}/events/{event_id}", json={"title": "Y", "date": "2024-01-02"},
    )
    assert response.status_code == 404


@pytest.mark.anyio
async def test_event_requires_title_and_date(auth_client: AsyncClient, legal_case):
    response = await auth_client.post(f"/api/legal-cases/{legal_case['id']}/events", json={"title": ""})
    assert response.status_code == 422


# =============================================================================
# Important Dates
# =============================================================================

@pytest.mark.anyio
async def test_important_date_crud(auth_client: AsyncClient, legal_case, today):
    url = f"/api/legal-cases/{legal_case['id']}/important-dates"
    response = await auth_client.post(url, json={
        "title": "Contestación", "start_date": today.isoformat(), "end_date": (today + timedelta(days=3)).isoformat(),
    })
    assert response.status_code == 201
    item = response.json()["important_date"]
    assert item["days_remaining"] == 3
    assert item["is_expired"] is False
    assert item["created_by"]["name"] == "Test Lawyer"

    response = await auth_client.put(f"{url}/{item['id']}", json={
        "title": "Contestación", "start_date": today.isoformat(),
        "end_date": (today + timedelta(days=5)).isoformat(), "is_expired": False,
    })
    assert response.json()["important_date"]["days_remaining"] == 5

    response = await auth_client.patch(f"{url}/{item['id']}/set-expired", json={"is_expired": True})
    assert response.json()["is_expired"] is True

    response = await auth_client.get(url)
    body = response.json()
    assert body["important_dates"][0]["days_remaining"] == 0
    assert body["next_important_date"] is None

    response = await auth_client.delete(f"{url}/{item['id']}")
    assert response.status_code == 200
    response = await auth_client.get(url)
    assert response.json()["important_dates"] == []


@pytest.mark.anyio
async def test_important_date_range_is_validated(auth_client: AsyncClient, legal_case, today):
    response = await auth_client.post(f"/api/legal-cases/{legal_case['id']}/important-dates", json={
        "title": "Lapso", "start_date": today.isoformat(), "end_date": (today - timedelta(days=1)).isoformat(),
    })
    assert response.status_code == 422
    assert response.json()["detail"]["errors"]["end_date"] == [
        "La fecha de finalización debe ser igual o posterior a la fecha de inicio.",
    ]


async def _case_with_dates(client: AsyncClient, code: str, case_type_id: int, today, *offsets: int) -> int:
    response = await client.post("/api/legal-cases", json={
        "code": code, "entry_date": "2024-01-01", "case_type_id": case_type_id,
    })
    case_id = response.json()["legal_case"]["id"]
    for offset in offsets:
        day = (today + timedelta(days=offset)).isoformat()
        await client.post(f"/api/legal-cases/{case_id}/important-dates", json={
            "title": f"Lapso {offset}", "start_date": day, "end_date": day,
        })
    return case_id


@pytest.mark.anyio
async def test_important_dates_list_sections(auth_client: AsyncClient, case_type, today):
    await _case_with_dates(auth_client, "A", case_type["id"], today, 10, 2, -3)
    await _case_with_dates(auth_client, "B", case_type["id"], today, 1, -1, -8)
    closed_id = await _case_with_dates(auth_client, "C", case_type["id"], today, 0, -2)
    await auth_client.patch(f"/api/legal-cases/{closed_id}/closing-date", json={"closing_date": today.isoformat()})

    response = await auth_client.get("/api/legal-cases/important-dates/list")
    assert response.status_code == 200
    body = response.json()

    upcoming = body["upcoming"]["data"]
    assert [(d["code"], d["next_important_date"]["title"]) for d in upcoming] == [("B", "Lapso 1"), ("A", "Lapso 2")]
    past_due = body["past_due"]["data"]
    assert [(d["code"], d["next_important_date"]["title"]) for d in past_due] == [("B", "Lapso -1"), ("A", "Lapso -3")]
    assert body["upcoming"]["meta"]["total"] == 2
    assert body["case_types"] == [{"id": case_type["id"], "name": "Divorcio"}]


@pytest.mark.anyio
async def test_important_dates_list_filters_and_paging(auth_client: AsyncClient, case_type, today):
    await _case_with_dates(auth_client, "A", case_type["id"], today, 2, 20)
    await _case_with_dates(auth_client, "B", case_type["id"], today, 5, -10)

    start = (today + timedelta(days=15)).isoformat()
    end = (today + timedelta(days=25)).isoformat()
    response = await auth_client.get("/api/legal-cases/important-dates/list", params={
        "upcoming_start_date": start, "upcoming_end_date": end,
    })
    upcoming = response.json()["upcoming"]["data"]
    # Case A has a date inside the range; its nearest deadline is still shown
    assert [(d["code"], d["next_important_date"]["title"]) for d in upcoming] == [("A", "Lapso 2")]

    response = await auth_client.get("/api/legal-cases/important-dates/list", params={
        "upcoming_per_page": "1", "upcoming_page": 2, "upcoming_case_type_id": "all",
    })
    section = response.json()["upcoming"]
    assert [d["code"] for d in section["data"]] == ["B"]
    assert section["meta"]["last_page"] == 2
    assert "upcoming_page=1" in section["meta"]["links"][0]["url"]

    response = await auth_client.get("/api/legal-cases/important-dates/list", params={
        "past_due_case_type_id": "999",
    })
    assert response.json()["past_due"]["data"] == []

    past_start = (today - timedelta(days=5)).isoformat()
    response = await auth_client.get("/api/legal-cases/important-dates/list", params={
        "past_due_start_date": past_start, "past_due_end_date": today.isoformat(),
    })
    assert response.json()["past_due"]["data"] == []
