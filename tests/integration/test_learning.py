"""Integration tests for courses, lessons, quizzes, assignments and progress."""

from __future__ import annotations

import pytest_asyncio

from horeca.services.auth import create_session
from horeca.services.tenant_bootstrap import create_member

QUIZ = {
    "title": "Hygiene check",
    "questions": [
        {"text": "Wash hands before work?", "kind": "single", "answers": [
            {"text": "Yes", "isCorrect": True}, {"text": "No"},
        ]},
        {"text": "Which are cold storage zones?", "kind": "multiple", "answers": [
            {"text": "Fridge", "isCorrect": True}, {"text": "Freezer", "isCorrect": True}, {"text": "Oven"},
        ]},
    ],
}


@pytest_asyncio.fixture
async def course(login, org):
    """Manager-authored course with two lessons and a quiz, assigned to the cook."""
    client = login(org.tokens["MANAGER"])
    course = (await client.post("/api/learning/courses", json={"title": "HACCP basics"})).json()["course"]
    for title in ("Intro", "Storage"):
        await client.post(f"/api/learning/courses/{course['id']}/lessons", json={"title": title, "content": {"md": title}})
    quiz = (await client.post(f"/api/learning/courses/{course['id']}/quiz", json=QUIZ)).json()["quiz"]
    await client.post(f"/api/learning/courses/{course['id']}/assign", json={"userId": org.employee.id})
    return {"id": course["id"], "quiz": quiz}


# ── Authoring ─────────────────────────────────────────────

async def test_manager_authors_course(login, org, course):
    client = login(org.tokens["MANAGER"])
    data = (await client.get(f"/api/learning/courses/{course['id']}")).json()["course"]
    assert data["lessonCount"] == 2
    assert [lesson["order"] for lesson in data["lessons"]] == [1, 2]
    assert data["quizId"] == course["quiz"]["id"]
    assert data["canEdit"] is True

    listed = (await client.get("/api/learning/courses", params={"limit": 1})).json()
    assert listed["pagination"] == {"page": 1, "limit": 1, "total": 1, "pages": 1}


async def test_employee_cannot_author(login, org, course):
    client = login(org.tokens["EMPLOYEE"])
    assert (await client.post("/api/learning/courses", json={"title": "Mine"})).status_code == 403
    resp = await client.put(f"/api/learning/courses/{course['id']}", json={"title": "Hacked"})
    assert resp.status_code == 403


async def test_second_quiz_rejected(login, org, course):
    client = login(org.tokens["MANAGER"])
    resp = await client.post(f"/api/learning/courses/{course['id']}/quiz", json=QUIZ)
    assert resp.status_code == 400


async def test_quiz_hides_answers_from_learners(login, org, course):
    author = login(org.tokens["MANAGER"])
    revealed = (await author.get(f"/api/learning/quiz/{course['quiz']['id']}")).json()["quiz"]
    assert revealed["questions"][0]["answers"][0]["isCorrect"] is True

    learner = login(org.tokens["EMPLOYEE"])
    hidden = (await learner.get(f"/api/learning/courses/{course['id']}/quiz")).json()["quiz"]
    assert all("isCorrect" not in a for q in hidden["questions"] for a in q["answers"])


async def test_update_lesson(login, org, course):
    client = login(org.tokens["MANAGER"])
    lessons = (await client.get(f"/api/learning/courses/{course['id']}/lessons")).json()["lessons"]
    resp = await client.patch(f"/api/learning/lessons/{lessons[0]['id']}", json={"title": "Welcome"})
    assert resp.json()["lesson"]["title"] == "Welcome"
    assert resp.json()["lesson"]["content"] == {"md": "Intro"}


async def test_course_invisible_to_other_tenant(login, org, other_org, course):
    client = login(other_org.token)
    assert (await client.get(f"/api/learning/courses/{course['id']}")).status_code == 404
    assert (await client.get("/api/learning/courses")).json()["courses"] == []


async def test_delete_course_removes_everything(login, org, course):
    client = login(org.tokens["MANAGER"])
    assert (await client.delete(f"/api/learning/courses/{course['id']}")).json() == {"ok": True}
    assert (await client.get(f"/api/learning/courses/{course['id']}")).status_code == 404
    assert (await client.get(f"/api/learning/quiz/{course['quiz']['id']}")).status_code == 404


# ── Learner flow ──────────────────────────────────────────

async def test_learner_completes_lessons_and_quiz(login, org, course):
    client = login(org.tokens["EMPLOYEE"])
    lessons = (await client.get(f"/api/learning/courses/{course['id']}/lessons")).json()["lessons"]

    resp = await client.post(f"/api/learning/lessons/{lessons[0]['id']}/complete")
    assert resp.json()["progress"]["lessonsDone"] == 1
    assert resp.json()["courseCompleted"] is False

    resp = await client.post(f"/api/learning/lessons/{lessons[1]['id']}/complete")
    assert resp.json()["courseCompleted"] is True

    q1, q2 = course["quiz"]["questions"]
    yes = q1["answers"][0]["id"]
    fridge, freezer = q2["answers"][0]["id"], q2["answers"][1]["id"]
    resp = await client.post(f"/api/learning/quiz/{course['quiz']['id']}/attempt", json={
        "answers": {q1["id"]: [yes], q2["id"]: [fridge]},
    })
    result = resp.json()
    assert result["score"] == 50
    assert result["correctCount"] == 1
    assert result["total"] == 2

    resp = await client.post(f"/api/learning/quiz/{course['quiz']['id']}/attempt", json={
        "answers": {q1["id"]: [yes], q2["id"]: [freezer, fridge]},
    })
    assert resp.json()["score"] == 100

    mine = (await client.get("/api/learning/progress/my")).json()
    assert mine["total"] == 1
    entry = mine["courses"][0]
    assert entry["progress"]["status"] == "DONE"
    assert entry["progress"]["score"] == 100
    assert entry["lastAttempt"]["score"] == 100
    assert mine["stats"] == {"notStarted": 0, "inProgress": 0, "completed": 1}

    done = (await client.get("/api/learning/progress/my", params={"status": "DONE"})).json()
    assert done["total"] == 1
    assert (await client.get("/api/learning/progress/my", params={"status": "LATE"})).status_code == 400


async def test_unassigned_learner_cannot_attempt(login, org, course):
    client = login(org.tokens["POINT_MANAGER"])
    resp = await client.post(f"/api/learning/quiz/{course['quiz']['id']}/attempt", json={"answers": {}})
    assert resp.status_code == 403
    assert resp.json() == {"error": "Course is not assigned to you"}


async def test_role_assignment_reaches_role_holders(login, org, course):
    author = login(org.tokens["MANAGER"])
    resp = await author.post(f"/api/learning/courses/{course['id']}/assign", json={"roleName": "POINT_MANAGER"})
    assert resp.status_code == 201
    dup = await author.post(f"/api/learning/courses/{course['id']}/assign", json={"roleName": "POINT_MANAGER"})
    assert dup.status_code == 400

    assignees = (await author.get(f"/api/learning/courses/{course['id']}/assignees")).json()["assignees"]
    assert {a["userEmail"] for a in assignees if a["userId"]} == {"cook@test.com"}
    assert [a["roleName"] for a in assignees if a["roleName"]] == ["POINT_MANAGER"]

    learner = login(org.tokens["POINT_MANAGER"])
    mine = (await learner.get("/api/learning/progress/my")).json()
    assert [c["course"]["id"] for c in mine["courses"]] == [course["id"]]
    assert mine["courses"][0]["progress"]["status"] == "NOT_STARTED"


async def test_assign_validation(login, org, other_org, course):
    author = login(org.tokens["MANAGER"])
    resp = await author.post(f"/api/learning/courses/{course['id']}/assign", json={"userId": other_org.employee.id})
    assert resp.status_code == 404
    resp = await author.post(f"/api/learning/courses/{course['id']}/assign", json={"roleName": "WIZARD"})
    assert resp.status_code == 404
    resp = await author.post(f"/api/learning/courses/{course['id']}/assign", json={})
    assert resp.status_code == 400

    other = login(other_org.token)
    await other.post("/api/owner/roles", json={"name": "Night Porter"})
    author = login(org.tokens["MANAGER"])
    resp = await author.post(f"/api/learning/courses/{course['id']}/assign", json={"roleName": "Night Porter"})
    assert resp.status_code == 404


# ── Sandbox ───────────────────────────────────────────────

async def test_sandbox_author_limits(login, session_factory):
    async with session_factory() as db:
        solo, _ = await create_member(db, None, "solo@x.com", "Solo", "EMPLOYEE")
        token = await create_session(solo, db)

    client = login(token)
    course = (await client.post("/api/learning/courses", json={"title": "Personal"})).json()["course"]
    assert course["tenantId"] is None

    second = await client.post("/api/learning/courses", json={"title": "Another"})
    assert second.status_code == 403
    assert "limit" in second.json()["error"]

    for i in range(3):
        resp = await client.post(f"/api/learning/courses/{course['id']}/lessons", json={"title": f"L{i}"})
        assert resp.status_code == 201
    resp = await client.post(f"/api/learning/courses/{course['id']}/lessons", json={"title": "Too many"})
    assert resp.status_code == 403


async def test_sandbox_course_is_private(login, session_factory):
    async with session_factory() as db:
        solo, _ = await create_member(db, None, "solo@x.com", "Solo", "EMPLOYEE")
        peer, _ = await create_member(db, None, "peer@x.com", "Peer", "EMPLOYEE")
        solo_token = await create_session(solo, db)
        peer_token = await create_session(peer, db)

    owner = login(solo_token)
    course = (await owner.post("/api/learning/courses", json={"title": "Private"})).json()["course"]

    other = login(peer_token)
    assert (await other.get(f"/api/learning/courses/{course['id']}")).status_code == 404
    assert (await other.get("/api/learning/courses")).json()["courses"] == []

    owner = login(solo_token)
    assert (await owner.post(f"/api/learning/courses/{course['id']}/assign", json={"userId": peer.id})).status_code == 201

    other = login(peer_token)
    assert (await other.get(f"/api/learning/courses/{course['id']}")).status_code == 200
    titles = [c["title"] for c in (await other.get("/api/learning/courses")).json()["courses"]]
    assert titles == ["Private"]
