# tests/test_profile.py
from datetime import date, timedelta

import pytest
from sqlalchemy import delete

from app.models.freelance_profile import FreelanceProfile
from app.models.user import UserRoleEnum
from app.services.profile_service import split_full_name


@pytest.mark.parametrize("full_name, expected", [
    ("Jean Dupont", ("Jean", "Dupont")),
    ("  Jean Claude Van Damme ", ("Jean", "Claude Van Damme")),
    ("Jean  Dupont", ("Jean", " Dupont")),
    ("Madonna", ("Madonna", "")),
    ("   ", ("", "")),
])
def test_split_full_name(full_name, expected):
    assert split_full_name(full_name) == expected


def profile_payload(**overrides) -> dict:
    payload = {
        "full_name": "Jean Claude Van Damme",
        "bio": "Développeur full-stack",
        "hourly_rate": 55,
        "availability": True,
        "experience_years": 6,
    }
    payload.update(overrides)
    return payload


async def test_profile_routes_are_freelance_only(client, make_user, auth_headers):
    customer = await make_user(UserRoleEnum.client)
    response = await client.get("/freelance-profile", headers=auth_headers(customer))
    assert response.status_code == 403
    assert response.json()["code"] == "INSUFFICIENT_PERMISSIONS"


async def test_get_my_profile(client, make_user, auth_headers):
    freelance = await make_user(UserRoleEnum.freelance, first_name="Nina", last_name="Simone")

    response = await client.get("/freelance-profile", headers=auth_headers(freelance))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["user_id"] == freelance.user_id
    assert "password_hash" not in data["user"]
    assert data["profile"]["completed_missions"] == 0
    assert data["skills"] == []
    assert data["portfolio"] == []


async def test_update_profile_splits_name_and_replaces_skills(client, make_user, auth_headers):
    freelance = await make_user(UserRoleEnum.freelance)
    headers = auth_headers(freelance)

    response = await client.put(
        "/freelance-profile",
        json=profile_payload(skills=[{"name": "Python", "level": "Avancé"}, {"name": "SQL"}]),
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["first_name"] == "Jean"
    assert data["user"]["last_name"] == "Claude Van Damme"
    assert data["user"]["bio"] == "Développeur full-stack"
    assert data["profile"]["hourly_rate"] == 55
    assert data["profile"]["experience_years"] == 6
    assert {s["skill"]["name"]: s["proficiency"] for s in data["skills"]} == {
        "Python": "advanced",
        "SQL": "intermediate",
    }

    # 第二次更新整組覆蓋
    response = await client.put(
        "/freelance-profile", json=profile_payload(skills=[{"name": "Rust", "level": "expert"}]), headers=headers
    )
    skills = response.json()["data"]["skills"]
    assert [(s["skill"]["name"], s["proficiency"]) for s in skills] == [("Rust", "expert")]


async def test_update_profile_skips_bad_skill_entries(client, make_user, auth_headers):
    freelance = await make_user(UserRoleEnum.freelance)

    response = await client.put(
        "/freelance-profile",
        json=profile_payload(skills=[
            {"name": "Python", "level": "expert"},
            {"name": "   ", "level": "expert"},
            {"name": "python", "level": "débutant"},
            {"name": "Docker", "level": "n'importe quoi"},
        ]),
        headers=auth_headers(freelance),
    )

    assert response.status_code == 200
    body = response.json()
    assert "2" in body["message"]
    assert {s["skill"]["name"]: s["proficiency"] for s in body["data"]["skills"]} == {
        "Docker": "intermediate",
        "Python": "expert",
    }


async def test_update_profile_ignores_stats_fields(client, make_user, auth_headers):
    freelance = await make_user(UserRoleEnum.freelance)
    headers = auth_headers(freelance)

    response = await client.put(
        "/freelance-profile",
        json=profile_payload(completed_missions=99, average_rating=5, total_earnings=100000),
        headers=headers,
    )
    assert response.status_code == 200
    profile = response.json()["data"]["profile"]
    assert profile["completed_missions"] == 0
    assert profile["average_rating"] == 0
    assert profile["total_earnings"] == 0
    assert profile["response_time_hours"] == 24


async def test_update_profile_sets_response_time(client, make_user, auth_headers):
    freelance = await make_user(UserRoleEnum.freelance)
    headers = auth_headers(freelance)

    response = await client.put("/freelance-profile", json=profile_payload(response_time_hours=2), headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["profile"]["response_time_hours"] == 2

    # 之後沒帶這個欄位就保持原值
    response = await client.put("/freelance-profile", json=profile_payload(), headers=headers)
    assert response.json()["data"]["profile"]["response_time_hours"] == 2

    stats = await client.get("/freelance-profile/stats", headers=headers)
    assert stats.json()["data"]["response_time_hours"] == 2


@pytest.mark.parametrize("overrides", [
    {"full_name": "   "},
    {"bio": ""},
    {"hourly_rate": -1},
    {"experience_years": -2},
    {"response_time_hours": -1},
])
async def test_update_profile_validation(client, make_user, auth_headers, overrides):
    freelance = await make_user(UserRoleEnum.freelance)
    response = await client.put("/freelance-profile", json=profile_payload(**overrides), headers=auth_headers(freelance))
    assert response.status_code == 400


async def test_update_profile_creates_missing_profile(client, make_user, auth_headers, db_session):
    freelance = await make_user(UserRoleEnum.freelance)
    await db_session.execute(delete(FreelanceProfile).where(FreelanceProfile.user_id == freelance.user_id))
    await db_session.commit()

    response = await client.put("/freelance-profile", json=profile_payload(), headers=auth_headers(freelance))

    assert response.status_code == 200
    assert response.json()["data"]["profile"]["user_id"] == freelance.user_id


async def test_stats(client, make_user, auth_headers):
    owner = await make_user(UserRoleEnum.client)
    freelance = await make_user(UserRoleEnum.freelance)
    mission = {
        "title": "Audit SEO",
        "description": "Audit complet du site",
        "category": "Marketing",
        "budget_min": 100,
        "budget_max": 300,
        "deadline": (date.today() + timedelta(days=10)).isoformat(),
    }
    first = (await client.post("/missions", json=mission, headers=auth_headers(owner))).json()["data"]
    second = (await client.post("/missions", json=mission, headers=auth_headers(owner))).json()["data"]
    for m in (first, second):
        await client.post(
            "/applications",
            json={"mission_id": m["mission_id"], "proposal": "Partant"},
            headers=auth_headers(freelance),
        )

    response = await client.get("/freelance-profile/stats", headers=auth_headers(freelance))

    assert response.status_code == 200
    assert response.json()["data"] == {
        "completed_missions": 0,
        "average_rating": 0.0,
        "total_earnings": 0.0,
        "response_time_hours": 24,
        "pending_applications": 2,
        "active_missions": 0,
    }


async def test_skill_crud(client, make_user, auth_headers):
    freelance = await make_user(UserRoleEnum.freelance)
    headers = auth_headers(freelance)

    response = await client.post("/freelance-profile/skills", json={"name": "Figma", "level": "Confirmé"}, headers=headers)
    assert response.status_code == 201
    added = response.json()["data"]
    assert added["proficiency"] == "advanced"
    skill_id = added["skill"]["skill_id"]

    response = await client.post("/freelance-profile/skills", json={"name": "figma"}, headers=headers)
    assert response.status_code == 409

    response = await client.put(f"/freelance-profile/skills/{skill_id}", json={"level": "expert"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["proficiency"] == "expert"

    response = await client.delete(f"/freelance-profile/skills/{skill_id}", headers=headers)
    assert response.status_code == 200

    response = await client.delete(f"/freelance-profile/skills/{skill_id}", headers=headers)
    assert response.status_code == 404


async def test_portfolio_crud(client, make_user, auth_headers):
    freelance = await make_user(UserRoleEnum.freelance)
    other = await make_user(UserRoleEnum.freelance)
    headers = auth_headers(freelance)

    response = await client.post(
        "/freelance-profile/portfolio",
        json={"title": "Boutique en ligne", "description": "Shopify sur mesure", "technologies": ["Liquid", " ", "JS"]},
        headers=headers,
    )
    assert response.status_code == 201
    project = response.json()["data"]
    assert project["technologies"] == ["Liquid", "JS"]
    url = f"/freelance-profile/portfolio/{project['project_id']}"

    response = await client.put(url, json={"title": "Boutique Shopify"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Boutique Shopify"
    assert response.json()["data"]["description"] == "Shopify sur mesure"

    # 別人的作品視為不存在
    response = await client.delete(url, headers=auth_headers(other))
    assert response.status_code == 404

    response = await client.delete(url, headers=headers)
    assert response.status_code == 200

    profile = (await client.get("/freelance-profile", headers=headers)).json()["data"]
    assert profile["portfolio"] == []
