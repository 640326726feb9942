from datetime import datetime, timedelta, timezone

from tests.conftest import PASSWORD, auth_header


def course_payload(**overrides):
    now = datetime.now(timezone.utc)
    payload = {
        "title": "Compilers",
        "start_date": (now + timedelta(days=1)).isoformat(),
        "end_date": (now + timedelta(days=90)).isoformat(),
    }
    payload.update(overrides)
    return payload


def test_register_login_me(client):
    r = client.post(
        "/auth/register",
        json={"email": "new@example.com", "password": PASSWORD, "role": "instructor"},
    )
    assert r.status_code == 201, r.text

    dup = client.post("/auth/register", json={"email": "new@example.com", "password": PASSWORD})
    assert dup.status_code == 400

    bad = client.post("/auth/login", json={"email": "new@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401

    token = client.post(
        "/auth/login", json={"email": "new@example.com", "password": PASSWORD}
    ).json()["access_token"]
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["role"] == "instructor"


def test_requests_without_token_are_rejected(client, seed_data):
    assert client.get("/courses/").status_code == 401
    bogus = client.get("/courses/", headers={"Authorization": "Bearer not-a-token"})
    assert bogus.status_code == 401


def test_instructor_creates_course(client, seed_data):
    r = client.post("/courses/", headers=auth_header(seed_data.teacher_id), json=course_payload())

    assert r.status_code == 201, r.text
    assert r.json()["teacher_id"] == seed_data.teacher_id


def test_student_cannot_create_course(client, seed_data):
    r = client.post("/courses/", headers=auth_header(seed_data.student1_id), json=course_payload())
    assert r.status_code == 403


def test_course_dates_must_be_ordered(client, seed_data):
    now = datetime.now(timezone.utc)
    r = client.post(
        "/courses/",
        headers=auth_header(seed_data.teacher_id),
        json=course_payload(end_date=(now - timedelta(days=1)).isoformat()),
    )
    assert r.status_code == 422


def test_list_open_courses(client, seed_data):
    client.post("/courses/", headers=auth_header(seed_data.teacher_id), json=course_payload())
    headers = auth_header(seed_data.student1_id)

    everything = client.get("/courses/", headers=headers).json()
    assert {c["title"] for c in everything} == {"Distributed Systems", "Compilers"}

    open_now = client.get(
        "/courses/",
        headers=headers,
        params={"open_at": datetime.now(timezone.utc).isoformat()},
    ).json()
    assert [c["title"] for c in open_now] == ["Distributed Systems"]


def test_assistant_edits_course_and_is_audited(client, seed_data):
    r = client.patch(
        f"/courses/{seed_data.course_id}",
        headers=auth_header(seed_data.assistant_id),
        json={"description": "Consensus, replication, clocks"},
    )
    assert r.status_code == 200, r.text

    trail = client.get(
        f"/courses/{seed_data.course_id}/activities",
        headers=auth_header(seed_data.teacher_id),
        params={"user_id": seed_data.assistant_id},
    ).json()
    assert [(a["course_id"], a["user_id"], a["activity"]) for a in trail] == [
        (seed_data.course_id, seed_data.assistant_id, "EDIT_COURSE")
    ]


def test_student_cannot_edit_course(client, seed_data):
    r = client.patch(
        f"/courses/{seed_data.course_id}",
        headers=auth_header(seed_data.student1_id),
        json={"title": "Hijacked"},
    )
    assert r.status_code == 403

    course = client.get(f"/courses/{seed_data.course_id}", headers=auth_header(seed_data.student1_id))
    assert course.json()["title"] == "Distributed Systems"


def test_edit_course_rejects_inverted_dates(client, seed_data):
    r = client.patch(
        f"/courses/{seed_data.course_id}",
        headers=auth_header(seed_data.teacher_id),
        json={"end_date": (seed_data.now - timedelta(days=30)).isoformat()},
    )
    assert r.status_code == 400


def test_only_teacher_deletes_course(client, seed_data):
    r = client.delete(f"/courses/{seed_data.course_id}", headers=auth_header(seed_data.assistant_id))
    assert r.status_code == 403

    r = client.delete(f"/courses/{seed_data.course_id}", headers=auth_header(seed_data.teacher_id))
    assert r.status_code == 204
    assert client.get(
        f"/courses/{seed_data.course_id}", headers=auth_header(seed_data.teacher_id)
    ).status_code == 404


def test_activity_log_is_staff_only(client, seed_data):
    r = client.get(
        f"/courses/{seed_data.course_id}/activities",
        headers=auth_header(seed_data.student1_id),
    )
    assert r.status_code == 403

    missing = client.get("/courses/999999/activities", headers=auth_header(seed_data.teacher_id))
    assert missing.status_code == 404


def test_rejected_assistant_edit_leaves_no_audit_record(client, seed_data):
    r = client.patch(
        f"/courses/{seed_data.course_id}",
        headers=auth_header(seed_data.assistant_id),
        json={"end_date": (seed_data.now - timedelta(days=30)).isoformat()},
    )
    assert r.status_code == 400

    trail = client.get(
        f"/courses/{seed_data.course_id}/activities",
        headers=auth_header(seed_data.teacher_id),
    ).json()
    assert trail == []


def test_invalid_edit_by_student_is_forbidden_not_bad_request(client, seed_data):
    r = client.patch(
        f"/courses/{seed_data.course_id}",
        headers=auth_header(seed_data.student1_id),
        json={"end_date": (seed_data.now - timedelta(days=30)).isoformat()},
    )
    assert r.status_code == 403
