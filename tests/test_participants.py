"""
CaseDesk - Participant Tests
Individuals, legal entities and attaching them to cases.
"""

import pytest
from httpx import AsyncClient


# =============================================================================
# Individuals
# =============================================================================

@pytest.mark.anyio
async def test_individual_crud(auth_client: AsyncClient, individual):
    assert individual["full_name"] == "María José González"

    response = await auth_client.put(f"/api/individuals/{individual['id']}", json={
        "national_id": "V-12345678",
        "first_name": "María",
        "last_name": "González",
        "second_last_name": "Pérez",
        "gender": "female",
        "email_1": "",
    })
    assert response.status_code == 200
    updated = response.json()["individual"]
    assert updated["full_name"] == "María González Pérez"
    assert updated["email_1"] is None

    response = await auth_client.delete(f"/api/individuals/{individual['id']}")
    assert response.json()["message"] == "Individuo eliminado exitosamente."
    response = await auth_client.get(f"/api/individuals/{individual['id']}")
    assert response.status_code == 404


@pytest.mark.anyio
async def test_individual_unique_fields(auth_client: AsyncClient, individual):
    response = await auth_client.post("/api/individuals", json={
        "national_id": "V-12345678",
        "first_name": "Otra",
        "last_name": "Persona",
        "email_1": "maria@example.com",
    })
    assert response.status_code == 422
    errors = response.json()["detail"]["errors"]
    assert errors["national_id"] == ["Esta cédula de identidad ya está registrada."]
    assert "email_1" in errors


@pytest.mark.anyio
async def test_deleted_individual_still_reserves_national_id(auth_client: AsyncClient, individual):
    await auth_client.delete(f"/api/individuals/{individual['id']}")
    response = await auth_client.post("/api/individuals", json={
        "national_id": "V-12345678", "first_name": "Nueva", "last_name": "Persona",
    })
    assert response.status_code == 422


@pytest.mark.anyio
async def test_individual_rejects_unknown_gender(auth_client: AsyncClient):
    response = await auth_client.post("/api/individuals", json={
        "national_id": "V-1", "first_name": "A", "last_name": "B", "gender": "unknown",
    })
    assert response.status_code == 422


@pytest.mark.anyio
async def test_individual_list_search_and_pagination(auth_client: AsyncClient):
    for number in range(12):
        await auth_client.post("/api/individuals", json={
            "national_id": f"V-{number:08d}", "first_name": f"Persona{number}", "last_name": "Ramírez",
        })

    response = await auth_client.get("/api/individuals")
    body = response.json()
    assert len(body["data"]) == 10
    assert body["data"][0]["first_name"] == "Persona11"
    assert body["meta"]["total"] == 12

    response = await auth_client.get("/api/individuals", params={"search": "V-00000003"})
    assert [p["first_name"] for p in response.json()["data"]] == ["Persona3"]


@pytest.mark.anyio
async def test_individual_search_treats_wildcards_as_text(auth_client: AsyncClient, individual):
    for query in ("%", "Mar_a", "_"):
        response = await auth_client.get("/api/individuals", params={"search": query})
        assert response.json()["meta"]["total"] == 0, query

    await auth_client.post("/api/individuals", json={
        "national_id": "V-99_000", "first_name": "Ana", "last_name": "Pérez",
    })
    response = await auth_client.get("/api/individuals", params={"search": "99_0"})
    assert [p["first_name"] for p in response.json()["data"]] == ["Ana"]


# =============================================================================
# Legal Entities
# =============================================================================

@pytest.mark.anyio
async def test_legal_entity_with_representative(auth_client: AsyncClient, legal_entity, individual):
    assert legal_entity["display_name"] == "Inversiones del Centro C.A. (InverCentro)"
    assert legal_entity["legal_representative"] is None

    payload = {
        "rif": "J-30000001-1",
        "business_name": "Inversiones del Centro C.A.",
        "legal_entity_type": "compania_anonima",
        "fiscal_address_line_1": "Av. Bolívar",
        "fiscal_city": "Caracas",
        "fiscal_state": "Distrito Capital",
        "legal_representative_id": individual["id"],
    }
    response = await auth_client.put(f"/api/legal-entities/{legal_entity['id']}", json=payload)
    assert response.status_code == 200
    updated = response.json()["legal_entity"]
    assert updated["display_name"] == "Inversiones del Centro C.A."
    assert updated["legal_representative"]["national_id"] == "V-12345678"

    response = await auth_client.get("/api/legal-entities/representatives")
    assert [r["full_name"] for r in response.json()] == ["María José González"]


@pytest.mark.anyio
async def test_legal_entity_validation(auth_client: AsyncClient, legal_entity):
    payload = {
        "rif": "J-30000001-1",
        "business_name": "Duplicada",
        "legal_entity_type": "compania_anonima",
        "fiscal_address_line_1": "Calle 1",
        "fiscal_city": "Valencia",
        "fiscal_state": "Carabobo",
    }
    response = await auth_client.post("/api/legal-entities", json=payload)
    assert response.status_code == 422
    assert response.json()["detail"]["errors"]["rif"] == ["Este RIF ya está registrado."]

    response = await auth_client.post("/api/legal-entities", json={**payload, "rif": "J-2", "legal_representative_id": 999})
    assert response.status_code == 422
    assert "legal_representative_id" in response.json()["detail"]["errors"]

    response = await auth_client.post("/api/legal-entities", json={**payload, "rif": "J-3", "legal_entity_type": "sa"})
    assert response.status_code == 422


@pytest.mark.anyio
async def test_legal_entity_search_and_delete(auth_client: AsyncClient, legal_entity):
    response = await auth_client.get("/api/legal-entities", params={"search": "invercentro"})
    assert [e["rif"] for e in response.json()["data"]] == ["J-30000001-1"]

    await auth_client.delete(f"/api/legal-entities/{legal_entity['id']}")
    response = await auth_client.get("/api/legal-entities")
    assert response.json()["data"] == []


# =============================================================================
# Case Participants
# =============================================================================

@pytest.mark.anyio
async def test_roles(auth_client: AsyncClient, legal_case):
    response = await auth_client.get(f"/api/legal-cases/{legal_case['id']}/participants/roles")
    body = response.json()
    assert body["legal_case"]["code"] == legal_case["code"]
    assert "Juez" in body["available_roles"]
    assert len(body["available_roles"]) == 6


@pytest.mark.anyio
async def test_search_participants(auth_client: AsyncClient, legal_case, individual, legal_entity):
    url = f"/api/legal-cases/{legal_case['id']}/participants/search"
    response = await auth_client.post(url, json={"query": "gonz"})
    assert response.json()["results"] == [{
        "id": individual["id"], "type": "individual", "name": "María José González", "identifier": "V-12345678",
    }]

    response = await auth_client.post(url, json={"query": "J-3000"})
    results = response.json()["results"]
    assert [(r["type"], r["identifier"]) for r in results] == [("entity", "J-30000001-1")]

    response = await auth_client.post(url, json={"query": "a"})
    assert response.status_code == 422


@pytest.mark.anyio
async def test_attach_change_role_and_detach(auth_client: AsyncClient, legal_case, individual, legal_entity):
    case_id = legal_case["id"]
    url = f"/api/legal-cases/{case_id}/participants"

    response = await auth_client.post(url, json={"type": "individual", "id": individual["id"], "role": "Testigo"})
    assert response.json()["message"] == "Participante asociado correctamente al expediente."
    await auth_client.post(url, json={"type": "individual", "id": individual["id"], "role": "Solicitante"})
    await auth_client.post(url, json={"type": "entity", "id": legal_entity["id"], "role": "Demandado"})

    response = await auth_client.get(f"/api/legal-cases/{case_id}")
    detail = response.json()
    assert [(p["id"], p["role"]) for p in detail["individuals"]] == [(individual["id"], "Solicitante")]
    assert detail["legal_entities"][0]["name"] == "Inversiones del Centro C.A. (InverCentro)"

    response = await auth_client.get(f"/api/individuals/{individual['id']}")
    assert response.json()["legal_cases"][0]["role"] == "Solicitante"
    response = await auth_client.get(f"/api/legal-entities/{legal_entity['id']}")
    assert response.json()["legal_cases"][0]["code"] == legal_case["code"]

    response = await auth_client.request("DELETE", url, json={"type": "individual", "id": individual["id"]})
    assert response.status_code == 200
    response = await auth_client.get(f"/api/legal-cases/{case_id}")
    assert response.json()["individuals"] == []


@pytest.mark.anyio
async def test_attach_unknown_participant(auth_client: AsyncClient, legal_case):
    url = f"/api/legal-cases/{legal_case['id']}/participants"
    response = await auth_client.post(url, json={"type": "individual", "id": 999, "role": "Juez"})
    assert response.status_code == 404

    response = await auth_client.post(url, json={"type": "individual", "id": 1, "role": ""})
    assert response.status_code == 422


@pytest.mark.anyio
async def test_deleted_individual_is_hidden_from_case(auth_client: AsyncClient, legal_case, individual):
    case_id = legal_case["id"]
    await auth_client.post(f"/api/legal-cases/{case_id}/participants", json={
        "type": "individual", "id": individual["id"], "role": "Solicitante",
    })
    await auth_client.delete(f"/api/individuals/{individual['id']}")

    response = await auth_client.get(f"/api/legal-cases/{case_id}")
    assert response.json()["individuals"] == []
