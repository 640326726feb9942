from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.models.assessment import Assessment
from app.models.submission import Submission
from tests.conftest import PASSWORD, TestingSessionLocal, auth_header


def login(client, email: str, password: str) -> dict:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def move_deadline(assessment_id: int, deadline: datetime, tolerance: int = 0) -> None:
    db: Session = TestingSessionLocal()
    try:
        a = db.get(Assessment, assessment_id)
        a.deadline = deadline
        a.start_time = deadline - timedelta(days=2)
        a.tolerance_time = tolerance
        db.commit()
    finally:
        db.close()


def test_submit_then_resubmit_is_conflict(client, seed_data):
    student = login(client, "student1@example.com", PASSWORD)

    r1 = client.post(
        f"/assessments/{seed_data.hw1_id}/submissions",
        headers=student,
        json={"answers": ["first"]},
    )
    assert r1.status_code == 201, r1.text
    body = r1.json()
    assert body["user_id"] == seed_data.student1_id
    assert body["answers"] == ["first"]
    assert body["is_late"] is False
    assert body["late_by_minutes"] == 0

    r2 = client.post(
        f"/assessments/{seed_data.hw1_id}/submissions",
        headers=student,
        json={"answers": ["second"]},
    )
    assert r2.status_code == 409, r2.text

    db = TestingSessionLocal()
    try:
        rows = db.query(Submission).filter(Submission.assessment_id == seed_data.hw1_id).all()
        assert [s.answers for s in rows] == [["first"]]
    finally:
        db.close()


def test_only_enrolled_students_can_submit(client, seed_data):
    for user_id in (seed_data.assistant_id, seed_data.teacher_id, seed_data.outsider_id):
        r = client.post(
            f"/assessments/{seed_data.hw1_id}/submissions",
            headers=auth_header(user_id),
            json={"answers": ["x"]},
        )
        assert r.status_code == 403, r.text


def test_submit_unknown_assessment_is_404(client, seed_data):
    r = client.post(
        "/assessments/999999/submissions",
        headers=auth_header(seed_data.student1_id),
        json={"answers": []},
    )
    assert r.status_code == 404


def test_late_submission_is_allowed_and_marked_late(client, seed_data):
    move_deadline(seed_data.hw1_id, datetime.now(timezone.utc) - timedelta(hours=2), tolerance=10)

    r = client.post(
        f"/assessments/{seed_data.hw1_id}/submissions",
        headers=auth_header(seed_data.student1_id),
        json={"answers": ["late"]},
    )

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["is_late"] is True
    assert body["late_by_minutes"] >= 119


def test_submission_within_tolerance_is_not_late(client, seed_data):
    move_deadline(seed_data.hw1_id, datetime.now(timezone.utc) - timedelta(minutes=5), tolerance=30)

    r = client.post(
        f"/assessments/{seed_data.hw1_id}/submissions",
        headers=auth_header(seed_data.student1_id),
        json={"answers": ["just in time"]},
    )

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["is_late"] is False
    assert 4 <= body["late_by_minutes"] <= 5


def test_students_see_only_their_own_submission(client, seed_data):
    client.post(
        f"/assessments/{seed_data.hw1_id}/submissions",
        headers=auth_header(seed_data.student1_id),
        json={"answers": ["mine"]},
    )

    own = client.get(
        f"/assessments/{seed_data.hw1_id}/submissions/{seed_data.student1_id}",
        headers=auth_header(seed_data.student1_id),
    )
    assert own.status_code == 200
    assert own.json()["answers"] == ["mine"]

    other = client.get(
        f"/assessments/{seed_data.hw1_id}/submissions/{seed_data.student1_id}",
        headers=auth_header(seed_data.student2_id),
    )
    assert other.status_code == 403

    listing = client.get(
        f"/assessments/{seed_data.hw1_id}/submissions",
        headers=auth_header(seed_data.student2_id),
    )
    assert listing.status_code == 403


def test_staff_list_submissions(client, seed_data):
    for student in (seed_data.student1_id, seed_data.student2_id):
        client.post(
            f"/assessments/{seed_data.hw1_id}/submissions",
            headers=auth_header(student),
            json={"answers": [str(student)]},
        )

    for staff in (seed_data.teacher_id, seed_data.assistant_id):
        r = client.get(
            f"/assessments/{seed_data.hw1_id}/submissions",
            headers=auth_header(staff),
        )
        assert r.status_code == 200, r.text
        assert sorted(s["user_id"] for s in r.json()) == sorted(
            [seed_data.student1_id, seed_data.student2_id]
        )

    # viewing is not a mutation, nothing is audited
    activities = client.get(
        f"/courses/{seed_data.course_id}/activities",
        headers=auth_header(seed_data.teacher_id),
    )
    assert activities.json() == []


def test_assistant_grades_and_is_audited(client, seed_data):
    client.post(
        f"/assessments/{seed_data.hw1_id}/submissions",
        headers=auth_header(seed_data.student1_id),
        json={"answers": ["42"]},
    )

    r = client.patch(
        f"/assessments/{seed_data.hw1_id}/submissions/{seed_data.student1_id}/grade",
        headers=auth_header(seed_data.assistant_id),
        json={"grade": 8.5, "feedback": "good"},
    )

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["grade"] == 8.5
    assert body["feedback"] == "good"
    assert body["corrected_at"] is not None

    activities = client.get(
        f"/courses/{seed_data.course_id}/activities",
        headers=auth_header(seed_data.teacher_id),
    ).json()
    assert [(a["user_id"], a["activity"]) for a in activities] == [
        (seed_data.assistant_id, "GRADE_TASK")
    ]


def test_student_cannot_grade(client, seed_data):
    client.post(
        f"/assessments/{seed_data.hw1_id}/submissions",
        headers=auth_header(seed_data.student1_id),
        json={"answers": ["42"]},
    )

    r = client.patch(
        f"/assessments/{seed_data.hw1_id}/submissions/{seed_data.student1_id}/grade",
        headers=auth_header(seed_data.student2_id),
        json={"grade": 10},
    )

    assert r.status_code == 403
    own = client.get(
        f"/assessments/{seed_data.hw1_id}/submissions/{seed_data.student1_id}",
        headers=auth_header(seed_data.student1_id),
    ).json()
    assert own["grade"] is None


def test_grade_missing_submission_is_404(client, seed_data):
    r = client.patch(
        f"/assessments/{seed_data.hw1_id}/submissions/{seed_data.student2_id}/grade",
        headers=auth_header(seed_data.teacher_id),
        json={"grade": 5},
    )
    assert r.status_code == 404
