# tests/test_missions.py
from datetime import date, timedelta

import pytest
from sqlalchemy import func
from sqlalchemy.future import select

from app.models.application import Application
from app.models.mission import Mission, MissionSkill, MissionReport
from app.models.user import UserRoleEnum
from app.repositories.mission_repo import MissionRepository


def mission_payload(**overrides) -> dict:
    payload = {
        "title": "Site vitrine React",
        "description": "Refonte complète du site de la boutique",
        "category": "Développement Web",
        "budget_min": 500,
        "budget_max": 1000,
        "deadline": (date.today() + timedelta(days=30)).isoformat(),
        "skills": ["React", "TypeScript"],
    }
    payload.update(overrides)
    return payload


async def create_mission(client, headers, **overrides) -> dict:
    response = await client.post("/missions", json=mission_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_create_mission(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client, first_name="Claire", last_name="Dupont")

    data = await create_mission(client, auth_headers(owner))

    assert data["status"] == "open"
    assert data["client_id"] == owner.user_id
    assert data["client"]["full_name"] == "Claire Dupont"
    assert data["assigned_freelance_id"] is None
    assert data["applications_count"] == 0
    assert data["is_reported"] is False
    assert sorted(s["skill"]["name"] for s in data["skills"]) == ["React", "TypeScript"]


async def test_create_mission_collapses_duplicate_skills(client, make_user, auth_headers, db_session):
    owner = await make_user(UserRoleEnum.client)

    data = await create_mission(client, auth_headers(owner), skills=["Go", "Go", "go ", "  "])

    assert [s["skill"]["name"] for s in data["skills"]] == ["Go"]
    count = await db_session.scalar(
        select(func.count()).select_from(MissionSkill).where(MissionSkill.mission_id == data["mission_id"])
    )
    assert count == 1


async def test_create_mission_without_skills(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    data = await create_mission(client, auth_headers(owner), skills=[])
    assert data["skills"] == []


async def test_invalid_budget_range_persists_nothing(client, make_user, auth_headers, db_session):
    owner = await make_user(UserRoleEnum.client)

    response = await client.post(
        "/missions",
        json=mission_payload(budget_min=1000, budget_max=500),
        headers=auth_headers(owner),
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    assert await db_session.scalar(select(func.count()).select_from(Mission)) == 0


@pytest.mark.parametrize("overrides", [
    {"title": "   "},
    {"budget_min": 0},
    {"deadline": (date.today() - timedelta(days=1)).isoformat()},
])
async def test_create_mission_rejects_invalid_fields(client, make_user, auth_headers, overrides):
    owner = await make_user(UserRoleEnum.client)
    response = await client.post("/missions", json=mission_payload(**overrides), headers=auth_headers(owner))
    assert response.status_code == 400


async def test_freelance_cannot_create_mission(client, make_user, auth_headers):
    freelance = await make_user(UserRoleEnum.freelance)
    response = await client.post("/missions", json=mission_payload(), headers=auth_headers(freelance))
    assert response.status_code == 403
    assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"


async def test_admin_can_create_mission(client, make_user, auth_headers):
    admin = await make_user(UserRoleEnum.admin)
    data = await create_mission(client, auth_headers(admin))
    assert data["client_id"] == admin.user_id


async def test_get_mission_not_found(client, make_user, auth_headers):
    user = await make_user()
    response = await client.get("/missions/does-not-exist", headers=auth_headers(user))
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


async def test_list_missions_filters_and_pagination(client, make_user, auth_headers):
    alice = await make_user(UserRoleEnum.client, first_name="Alice", last_name="Martin")
    bob = await make_user(UserRoleEnum.client, first_name="Bob", last_name="Leroy")
    await create_mission(client, auth_headers(alice), title="Application mobile", category="Mobile")
    await create_mission(client, auth_headers(alice), title="API Python", category="Backend")
    await create_mission(client, auth_headers(bob), title="Logo moderne", category="Design",
                         description="Identité visuelle")

    headers = auth_headers(alice)

    response = await client.get("/missions", params={"category": "Backend"}, headers=headers)
    assert [m["title"] for m in response.json()["data"]["missions"]] == ["API Python"]

    # 標題關鍵字 (不分大小寫)
    response = await client.get("/missions", params={"search": "mobile"}, headers=headers)
    assert [m["title"] for m in response.json()["data"]["missions"]] == ["Application mobile"]

    # 客戶全名
    response = await client.get("/missions", params={"search": "bob ler"}, headers=headers)
    assert [m["title"] for m in response.json()["data"]["missions"]] == ["Logo moderne"]

    # % 和 _ 只當一般字元
    response = await client.get("/missions", params={"search": "%"}, headers=headers)
    assert response.json()["data"]["missions"] == []

    response = await client.get(
        "/missions", params={"limit": 2, "page": 2, "sort_by": "title", "sort_order": "asc"}, headers=headers
    )
    data = response.json()["data"]
    assert [m["title"] for m in data["missions"]] == ["Logo moderne"]
    assert data["pagination"] == {
        "current_page": 2,
        "total_items": 3,
        "total_pages": 2,
        "items_per_page": 2,
    }


async def test_search_treats_wildcards_literally(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    headers = auth_headers(owner)
    await create_mission(client, headers, title="Migration user_id", description="Renommer une colonne")
    await create_mission(client, headers, title="Remise de 50% sur le site", description="Boutique")
    await create_mission(client, headers, title="Audit SEO", description="Analyse du site")

    cases = [
        ("_", ["Migration user_id"]),
        ("50%", ["Remise de 50% sur le site"]),
        ("%", ["Remise de 50% sur le site"]),
    ]
    for term, expected in cases:
        response = await client.get("/missions", params={"search": term}, headers=headers)
        assert [m["title"] for m in response.json()["data"]["missions"]] == expected, term


@pytest.mark.parametrize("params", [
    {"sort_by": "password_hash"},
    {"sort_order": "sideways"},
    {"limit": 101},
    {"page": 0},
    {"status": "archived"},
])
async def test_list_missions_rejects_bad_query(client, make_user, auth_headers, params):
    user = await make_user()
    response = await client.get("/missions", params=params, headers=auth_headers(user))
    assert response.status_code == 400


async def test_update_mission(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    mission = await create_mission(client, auth_headers(owner))

    response = await client.put(
        f"/missions/{mission['mission_id']}",
        json={"title": "Nouveau titre", "skills": ["Vue"]},
        headers=auth_headers(owner),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Nouveau titre"
    assert data["description"] == mission["description"]
    assert [s["skill"]["name"] for s in data["skills"]] == ["Vue"]


async def test_update_mission_checks_merged_budget(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    mission = await create_mission(client, auth_headers(owner))

    response = await client.put(
        f"/missions/{mission['mission_id']}", json={"budget_min": 2000}, headers=auth_headers(owner)
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


async def test_non_owner_cannot_modify_mission(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    other = await make_user(UserRoleEnum.client)
    mission = await create_mission(client, auth_headers(owner))
    mission_url = f"/missions/{mission['mission_id']}"

    response = await client.put(mission_url, json={"title": "Pirate"}, headers=auth_headers(other))
    assert response.status_code == 403
    response = await client.patch(f"{mission_url}/status", json={"status": "cancelled"}, headers=auth_headers(other))
    assert response.status_code == 403
    response = await client.delete(mission_url, headers=auth_headers(other))
    assert response.status_code == 403


async def test_admin_can_change_any_mission_status(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    admin = await make_user(UserRoleEnum.admin)
    mission = await create_mission(client, auth_headers(owner))

    response = await client.patch(
        f"/missions/{mission['mission_id']}/status", json={"status": "in_progress"}, headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "in_progress"


async def test_update_status_rejects_unknown_value(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    mission = await create_mission(client, auth_headers(owner))

    response = await client.patch(
        f"/missions/{mission['mission_id']}/status", json={"status": "archived"}, headers=auth_headers(owner)
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


async def test_terminal_mission_cannot_change(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    headers = auth_headers(owner)
    mission = await create_mission(client, headers)
    mission_url = f"/missions/{mission['mission_id']}"

    response = await client.patch(f"{mission_url}/status", json={"status": "completed"}, headers=headers)
    assert response.status_code == 200

    response = await client.patch(f"{mission_url}/status", json={"status": "open"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_OPERATION"

    response = await client.put(mission_url, json={"title": "Trop tard"}, headers=headers)
    assert response.status_code == 400


async def test_status_route_cannot_enter_open_or_assigned(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    headers = auth_headers(owner)
    mission = await create_mission(client, headers)
    status_url = f"/missions/{mission['mission_id']}/status"

    # assigned 只能由接受應徵產生
    response = await client.patch(status_url, json={"status": "assigned"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_OPERATION"

    response = await client.patch(status_url, json={"status": "in_progress"}, headers=headers)
    assert response.status_code == 200

    response = await client.patch(status_url, json={"status": "open"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_OPERATION"

    response = await client.get(f"/missions/{mission['mission_id']}", headers=headers)
    assert response.json()["data"]["status"] == "in_progress"


async def test_delete_mission_removes_dependents(client, make_user, auth_headers, db_session):
    owner = await make_user(UserRoleEnum.client)
    freelance = await make_user(UserRoleEnum.freelance)
    mission = await create_mission(client, auth_headers(owner))
    mission_id = mission["mission_id"]

    response = await client.post(
        "/applications",
        json={"mission_id": mission_id, "proposal": "Je suis disponible", "proposed_budget": 800},
        headers=auth_headers(freelance),
    )
    assert response.status_code == 201
    response = await client.post(
        f"/missions/{mission_id}/report", json={"reason": "Spam"}, headers=auth_headers(freelance)
    )
    assert response.status_code == 201

    response = await client.delete(f"/missions/{mission_id}", headers=auth_headers(owner))
    assert response.status_code == 200

    response = await client.get(f"/missions/{mission_id}", headers=auth_headers(owner))
    assert response.status_code == 404
    for model in (MissionSkill, Application, MissionReport):
        count = await db_session.scalar(
            select(func.count()).select_from(model).where(model.mission_id == mission_id)
        )
        assert count == 0


async def test_report_mission_once(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    reporter = await make_user(UserRoleEnum.freelance)
    mission = await create_mission(client, auth_headers(owner))
    report_url = f"/missions/{mission['mission_id']}/report"

    response = await client.post(report_url, json={"reason": "Arnaque"}, headers=auth_headers(reporter))
    assert response.status_code == 201
    report = response.json()["data"]
    assert report["reporter_id"] == reporter.user_id
    assert report["status"] == "pending"

    response = await client.post(report_url, json={"reason": "Encore"}, headers=auth_headers(reporter))
    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"

    response = await client.get(f"/missions/{mission['mission_id']}", headers=auth_headers(owner))
    assert response.json()["data"]["is_reported"] is True

    response = await client.get("/missions", params={"is_reported": "true"}, headers=auth_headers(owner))
    assert [m["mission_id"] for m in response.json()["data"]["missions"]] == [mission["mission_id"]]


async def test_concurrent_duplicate_report_is_conflict(client, make_user, auth_headers, monkeypatch):
    owner = await make_user(UserRoleEnum.client)
    reporter = await make_user(UserRoleEnum.freelance)
    mission = await create_mission(client, auth_headers(owner))
    report_url = f"/missions/{mission['mission_id']}/report"

    response = await client.post(report_url, json={"reason": "Arnaque"}, headers=auth_headers(reporter))
    assert response.status_code == 201

    # 模擬兩個請求同時通過「是否已檢舉」的檢查，只剩唯一鍵能擋
    async def _no_report(self, mission_id, reporter_id):
        return None
    monkeypatch.setattr(MissionRepository, "get_report", _no_report)

    response = await client.post(report_url, json={"reason": "Encore"}, headers=auth_headers(reporter))
    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"


async def test_stats_overview(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    headers = auth_headers(owner)
    first = await create_mission(client, headers, budget_max=1000)
    await create_mission(client, headers, budget_max=2000)
    await client.patch(f"/missions/{first['mission_id']}/status", json={"status": "cancelled"}, headers=headers)

    response = await client.get("/missions/stats/overview", headers=headers)

    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["total"] == 2
    assert stats["by_status"] == {"open": 1, "cancelled": 1}
    assert stats["reported"] == 0
    assert stats["average_budget_max"] == pytest.approx(1500)
