"""
CaseDesk - Legal Case Tests
Case CRUD, advanced filters, status history and tags.
"""

import json
from datetime import timedelta

import pytest
from httpx import AsyncClient


async def _create_case(client: AsyncClient, code: str, case_type_id: int, **extra) -> dict:
    payload = {"code": code, "entry_date": "2024-02-01", "case_type_id": case_type_id, **extra}
    response = await client.post("/api/legal-cases", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["legal_case"]


# =============================================================================
# CRUD
# =============================================================================

@pytest.mark.anyio
async def test_create_case(auth_client: AsyncClient, legal_case, case_type):
    assert legal_case["code"] == "EXP-2024-0001"
    assert legal_case["entry_date"] == "2024-01-15"
    assert legal_case["entry_date_display"] == "15/01/2024"
    assert legal_case["case_type"] == {"id": case_type["id"], "name": "Divorcio"}
    assert legal_case["current_status"] is None
    assert legal_case["individuals"] == []


@pytest.mark.anyio
async def test_create_case_with_new_case_type(auth_client: AsyncClient):
    response = await auth_client.post("/api/legal-cases", json={
        "code": "EXP-9", "entry_date": "2024-03-01", "new_case_type": "Título Supletorio",
    })
    assert response.status_code == 201
    assert response.json()["legal_case"]["case_type"]["name"] == "Título Supletorio"

    response = await auth_client.get("/api/case-types")
    assert [t["name"] for t in response.json()] == ["Título Supletorio"]


@pytest.mark.anyio
async def test_create_case_validation(auth_client: AsyncClient, legal_case, case_type):
    response = await auth_client.post("/api/legal-cases", json={"code": "EXP-2", "entry_date": "2024-03-01"})
    assert response.status_code == 422
    assert response.json()["detail"]["errors"]["case_type_id"] == ["El tipo de caso es obligatorio."]

    response = await auth_client.post("/api/legal-cases", json={
        "code": "EXP-2", "entry_date": "2024-03-01", "case_type_id": 999,
    })
    assert response.status_code == 422

    response = await auth_client.post("/api/legal-cases", json={
        "code": legal_case["code"], "entry_date": "2024-03-01", "case_type_id": case_type["id"],
    })
    assert response.status_code == 422
    assert "code" in response.json()["detail"]["errors"]


@pytest.mark.anyio
async def test_update_and_dates(auth_client: AsyncClient, legal_case, case_type):
    case_id = legal_case["id"]
    response = await auth_client.put(f"/api/legal-cases/{case_id}", json={
        "code": "EXP-2024-0001-B", "entry_date": "2024-01-20", "case_type_id": case_type["id"], "sentence_date": "",
    })
    assert response.status_code == 200
    assert response.json()["legal_case"]["code"] == "EXP-2024-0001-B"

    response = await auth_client.patch(f"/api/legal-cases/{case_id}/sentence-date", json={"sentence_date": "2024-06-01"})
    assert response.json()["sentence_date"] == "2024-06-01"

    response = await auth_client.patch(f"/api/legal-cases/{case_id}/closing-date", json={"closing_date": "2024-07-01"})
    assert response.json()["closing_date"] == "2024-07-01"

    response = await auth_client.get(f"/api/legal-cases/{case_id}")
    detail = response.json()
    assert detail["sentence_date"] == "2024-06-01"
    assert detail["closing_date"] == "2024-07-01"

    response = await auth_client.patch(f"/api/legal-cases/{case_id}/closing-date", json={"closing_date": None})
    assert response.json()["closing_date"] is None


@pytest.mark.anyio
async def test_delete_hides_case(auth_client: AsyncClient, legal_case):
    response = await auth_client.delete(f"/api/legal-cases/{legal_case['id']}")
    assert response.status_code == 200

    response = await auth_client.get(f"/api/legal-cases/{legal_case['id']}")
    assert response.status_code == 404
    response = await auth_client.get("/api/legal-cases")
    assert response.json()["data"] == []


@pytest.mark.anyio
async def test_case_detail_sections(auth_client: AsyncClient, legal_case, individual, today):
    case_id = legal_case["id"]
    await auth_client.post(f"/api/legal-cases/{case_id}/participants", json={
        "type": "individual", "id": individual["id"], "role": "Solicitante",
    })
    await auth_client.post(f"/api/legal-cases/{case_id}/events", json={"title": "Admisión", "date": "2024-01-16"})
    await auth_client.post(f"/api/legal-cases/{case_id}/important-dates", json={
        "title": "Contestación", "start_date": today.isoformat(), "end_date": today.isoformat(),
    })

    response = await auth_client.get(f"/api/legal-cases/{case_id}")
    detail = response.json()
    assert detail["individuals"][0]["full_name"] == "María José González"
    assert detail["individuals"][0]["role"] == "Solicitante"
    assert detail["events"][0]["title"] == "Admisión"
    assert detail["events"][0]["user"]["name"] == "Test Lawyer"
    assert detail["next_important_date"]["title"] == "Contestación"
    assert detail["next_important_date"]["days_remaining"] == 0
    assert detail["media"] == []
    assert detail["tags"] == []


# =============================================================================
# Listing & Filters
# =============================================================================

@pytest.mark.anyio
async def test_list_newest_first_with_page_size(auth_client: AsyncClient, case_type):
    for number in range(1, 8):
        await _create_case(auth_client, f"EXP-{number:03d}", case_type["id"])

    response = await auth_client.get("/api/legal-cases", params={"per_page": "5"})
    body = response.json()
    assert [c["code"] for c in body["data"]] == ["EXP-007", "EXP-006", "EXP-005", "EXP-004", "EXP-003"]
    assert body["meta"]["total"] == 7
    assert body["meta"]["last_page"] == 2
    assert body["meta"]["from"] == 1
    assert body["case_types"] == [{"id": case_type["id"], "name": "Divorcio"}]
    assert body["empty_message"] is None

    response = await auth_client.get("/api/legal-cases", params={"per_page": "7", "page": 2})
    body = response.json()
    assert body["meta"]["per_page"] == 10
    assert body["data"] == []
    assert body["empty_message"] == "No hay expedientes registrados"


@pytest.mark.anyio
async def test_string_and_date_filters(auth_client: AsyncClient, case_type):
    await _create_case(auth_client, "CIV-001", case_type["id"], entry_date="2024-01-10")
    await _create_case(auth_client, "CIV-002", case_type["id"], entry_date="2024-03-10", closing_date="2024-04-01")
    await _create_case(auth_client, "PEN-001", case_type["id"], entry_date="2024-05-10")

    async def codes(filters):
        response = await auth_client.get("/api/legal-cases", params={"filter": json.dumps(filters)})
        assert response.status_code == 200
        return sorted(c["code"] for c in response.json()["data"])

    assert await codes([{"field": "code", "operator": "starts_with", "value": "civ", "type": "string"}]) == [
        "CIV-001", "CIV-002",
    ]
    assert await codes([{"field": "code", "operator": "not_contains", "value": "CIV", "type": "string"}]) == [
        "PEN-001",
    ]
    assert await codes([{
        "field": "entry_date", "operator": "between",
        "value": {"start": "2024-02-01", "end": "2024-06-01"}, "type": "date",
    }]) == ["CIV-002", "PEN-001"]
    assert await codes([{"field": "closing_date", "operator": "is_null", "type": "date"}]) == [
        "CIV-001", "PEN-001",
    ]
    assert await codes([
        {"field": "code", "operator": "contains", "value": "CIV", "type": "string"},
        {"field": "entry_date", "operator": "after", "value": "2024-02-01", "type": "date"},
    ]) == ["CIV-002"]
    # Unusable filters are ignored
    assert len(await codes([{"field": "nope", "operator": "equals", "value": "x"}])) == 3


@pytest.mark.anyio
async def test_created_at_filters_compare_the_calendar_day(auth_client: AsyncClient, case_type, today):
    await _create_case(auth_client, "HOY-001", case_type["id"])

    async def codes(operator, value):
        filters = [{"field": "created_at", "operator": operator, "value": value, "type": "date"}]
        response = await auth_client.get("/api/legal-cases", params={"filter": json.dumps(filters)})
        return [c["code"] for c in response.json()["data"]]

    day = today.isoformat()
    yesterday = (today - timedelta(days=1)).isoformat()
    tomorrow = (today + timedelta(days=1)).isoformat()
    assert await codes("equals", day) == ["HOY-001"]
    assert await codes("after", day) == []
    assert await codes("after", yesterday) == ["HOY-001"]
    assert await codes("before", day) == []
    assert await codes("before", tomorrow) == ["HOY-001"]
    assert await codes("between", {"start": day, "end": day}) == ["HOY-001"]
    assert await codes("between", {"start": tomorrow, "end": tomorrow}) == []


@pytest.mark.anyio
async def test_string_filters_match_wildcard_characters_literally(auth_client: AsyncClient, case_type):
    await _create_case(auth_client, "A_B-1", case_type["id"])
    await _create_case(auth_client, "AXB-2", case_type["id"])
    await _create_case(auth_client, "100%-3", case_type["id"])

    async def codes(operator, value):
        filters = [{"field": "code", "operator": operator, "value": value, "type": "string"}]
        response = await auth_client.get("/api/legal-cases", params={"filter": json.dumps(filters)})
        return sorted(c["code"] for c in response.json()["data"])

    assert await codes("contains", "a_b") == ["A_B-1"]
    assert await codes("contains", "%") == ["100%-3"]
    assert await codes("starts_with", "a_") == ["A_B-1"]
    assert await codes("ends_with", "%-3") == ["100%-3"]
    assert await codes("not_contains", "_") == ["100%-3", "AXB-2"]


@pytest.mark.anyio
async def test_select_filter_on_case_type(auth_client: AsyncClient, case_type):
    response = await auth_client.post("/api/case-types", json={"name": "Herencia"})
    other_type = response.json()["case_type"]
    await _create_case(auth_client, "A-1", case_type["id"])
    await _create_case(auth_client, "B-1", other_type["id"])

    filters = [{"field": "case_type_id", "operator": "equals", "value": str(other_type["id"]), "type": "select"}]
    response = await auth_client.get("/api/legal-cases", params={"filter": json.dumps(filters)})
    assert [c["code"] for c in response.json()["data"]] == ["B-1"]


@pytest.mark.anyio
async def test_participant_filters(auth_client: AsyncClient, legal_case, individual, legal_entity, case_type):
    await _create_case(auth_client, "OTHER-1", case_type["id"])
    case_id = legal_case["id"]
    await auth_client.post(f"/api/legal-cases/{case_id}/participants", json={
        "type": "individual", "id": individual["id"], "role": "Solicitante",
    })
    await auth_client.post(f"/api/legal-cases/{case_id}/participants", json={
        "type": "entity", "id": legal_entity["id"], "role": "Demandado",
    })

    async def codes(filters):
        response = await auth_client.get("/api/legal-cases", params={"filter": json.dumps(filters)})
        return [c["code"] for c in response.json()["data"]]

    assert await codes([{
        "field": "individual_id_document", "operator": "equals", "value": "V-12345678", "type": "individual",
    }]) == [legal_case["code"]]
    assert await codes([{
        "field": "legal_entity_business_name", "operator": "contains", "value": "invercentro", "type": "legal_entity",
    }]) == [legal_case["code"]]
    assert await codes([{
        "field": "legal_entity_rif", "operator": "starts_with", "value": "G-", "type": "legal_entity",
    }]) == []


# =============================================================================
# Status History
# =============================================================================

@pytest.mark.anyio
async def test_status_history_and_catalog(auth_client: AsyncClient, legal_case):
    case_id = legal_case["id"]
    response = await auth_client.post(f"/api/legal-cases/{case_id}/status", json={"status": "En Tramite"})
    assert response.status_code == 201
    response = await auth_client.post(
        f"/api/legal-cases/{case_id}/status", json={"status": "Suspendidos", "reason": "Falta de impulso"},
    )
    assert response.json()["message"] == "Estado actualizado exitosamente."

    response = await auth_client.get(f"/api/legal-cases/{case_id}/statuses")
    assert [s["name"] for s in response.json()["statuses"]] == ["Suspendidos", "En Tramite"]

    response = await auth_client.get(f"/api/legal-cases/{case_id}")
    assert response.json()["current_status"]["name"] == "Suspendidos"

    response = await auth_client.get("/api/legal-cases/statuses/available")
    statuses = response.json()["statuses"]
    assert [s["name"] for s in statuses] == ["En Tramite", "Suspendidos"]
    assert statuses[0]["description"] == "Creado automáticamente desde la interfaz de expedientes"


@pytest.mark.anyio
async def test_status_reason_too_long(auth_client: AsyncClient, legal_case):
    response = await auth_client.post(
        f"/api/legal-cases/{legal_case['id']}/status", json={"status": "X", "reason": "r" * 1001},
    )
    assert response.status_code == 422


# =============================================================================
# Tags
# =============================================================================

@pytest.mark.anyio
async def test_attach_detach_and_sync_tags(auth_client: AsyncClient, legal_case):
    case_id = legal_case["id"]
    response = await auth_client.post(f"/api/legal-cases/{case_id}/tags", json={"tags": ["Urgente", "Civil"]})
    body = response.json()
    assert body["created"] is True
    assert sorted(t["name"] for t in body["tags"]) == ["Civil", "Urgente"]

    response = await auth_client.post(f"/api/legal-cases/{case_id}/tags", json={"tags": ["Urgente"]})
    body = response.json()
    assert body["created"] is False
    assert len(body["tags"]) == 2

    response = await auth_client.request("DELETE", f"/api/legal-cases/{case_id}/tag", json={"tag": "Civil"})
    assert [t["name"] for t in response.json()["tags"]] == ["Urgente"]

    response = await auth_client.put(f"/api/legal-cases/{case_id}/tags", json={"tags": ["Laboral", "Nuevo"]})
    assert sorted(t["name"] for t in response.json()["tags"]) == ["Laboral", "Nuevo"]

    response = await auth_client.get("/api/legal-cases/all-tags")
    assert sorted(t["name"] for t in response.json()["tags"]) == ["Civil", "Laboral", "Nuevo", "Urgente"]

    response = await auth_client.put(f"/api/legal-cases/{case_id}/tags", json={"tags": []})
    assert response.json()["tags"] == []


@pytest.mark.anyio
async def test_attach_requires_a_tag(auth_client: AsyncClient, legal_case):
    response = await auth_client.post(f"/api/legal-cases/{legal_case['id']}/tags", json={"tags": []})
    assert response.status_code == 422
