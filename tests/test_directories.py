from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.core.deps import build_deadline_scheduler
from app.core.exceptions import AuditWriteError
from app.core.timeutils import as_utc
from app.models.enums import Activity, Role
from app.models.submission import Submission
from app.services.deadline_scheduler import REMINDER_TITLE, reminder_body
from app.services.directories import (
    SqlActivityAudit,
    SqlAssessmentDirectory,
    SqlCourseDirectory,
)
from tests.conftest import TestingSessionLocal, auth_header
from tests.fakes import RecordingChannel


def add_submission(assessment_id, user_id, at):
    db = TestingSessionLocal()
    try:
        db.add(Submission(assessment_id=assessment_id, user_id=user_id, answers=["a"], submitted_at=at))
        db.commit()
    finally:
        db.close()


def test_open_courses_respect_start_and_end(seed_data):
    directory = SqlCourseDirectory(TestingSessionLocal)

    assert [c.id for c in directory.find_open_courses(seed_data.now)] == [seed_data.course_id]
    assert directory.find_open_courses(seed_data.now - timedelta(days=8)) == []
    assert directory.find_open_courses(seed_data.now + timedelta(days=30)) == []


def test_find_course_and_enrollments(seed_data):
    directory = SqlCourseDirectory(TestingSessionLocal)

    course = directory.find_course(seed_data.course_id)
    assert course.teacher_id == seed_data.teacher_id
    assert directory.find_course(999999) is None

    students = directory.find_enrollments(seed_data.course_id, Role.STUDENT)
    assert [e.user_id for e in students] == sorted([seed_data.student1_id, seed_data.student2_id])

    assistant = directory.find_enrollment(seed_data.course_id, seed_data.assistant_id)
    assert assistant.role == Role.ASSISTANT
    assert directory.find_enrollment(seed_data.course_id, seed_data.outsider_id) is None


def test_find_upcoming_uses_closed_window(seed_data):
    directory = SqlAssessmentDirectory(TestingSessionLocal)
    hw1_deadline = seed_data.now + timedelta(minutes=30)

    upcoming = directory.find_upcoming(seed_data.course_id, seed_data.now, seed_data.now + timedelta(minutes=70))
    assert [a.title for a in upcoming] == ["HW1"]

    # both ends inclusive; the seeded deadline is exact to the microsecond
    at_edge = directory.find_upcoming(seed_data.course_id, hw1_deadline, hw1_deadline)
    assert [a.id for a in at_edge] == [seed_data.hw1_id]

    later = directory.find_upcoming(
        seed_data.course_id,
        seed_data.now + timedelta(minutes=31),
        seed_data.now + timedelta(days=4),
    )
    assert [a.title for a in later] == ["Midterm"]


def test_snapshot_keys_submissions_by_user(seed_data):
    add_submission(seed_data.hw1_id, seed_data.student2_id, seed_data.now)
    directory = SqlAssessmentDirectory(TestingSessionLocal)

    (hw1,) = directory.find_upcoming(seed_data.course_id, seed_data.now, seed_data.now + timedelta(hours=1))

    assert set(hw1.submissions) == {seed_data.student2_id}
    assert hw1.submissions[seed_data.student2_id].answers == ["a"]


def test_audit_record_is_persisted(seed_data):
    audit = SqlActivityAudit(TestingSessionLocal)

    entry = audit.record(seed_data.course_id, seed_data.assistant_id, Activity.ADD_MODULE, seed_data.now)

    assert entry.id is not None
    assert entry.activity == Activity.ADD_MODULE
    assert as_utc(entry.created_at) == seed_data.now


def test_audit_store_failure_becomes_audit_write_error(seed_data):
    class BrokenSession:
        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def add(self, entry):
            pass

        def commit(self):
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        def rollback(self):
            pass

    audit = SqlActivityAudit(BrokenSession)

    with pytest.raises(AuditWriteError):
        audit.record(seed_data.course_id, seed_data.assistant_id, Activity.ADD_MODULE, seed_data.now)


def test_tick_against_database(seed_data):
    add_submission(seed_data.hw1_id, seed_data.student1_id, seed_data.now)
    channel = RecordingChannel()
    scheduler = build_deadline_scheduler(TestingSessionLocal, channel)

    summary = scheduler.tick(seed_data.now)

    assert channel.sent == [
        (seed_data.student2_id, REMINDER_TITLE, reminder_body("HW1"), "deadline-reminder")
    ]
    assert summary.courses == 1
    assert summary.succeeded == 1


def test_admin_deadline_check(client, seed_data, channel):
    r = client.post("/admin/deadlines/check", headers=auth_header(seed_data.teacher_id))

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["courses"] == 1
    assert body["attempted"] == 2
    assert body["succeeded"] == 2
    assert sorted(user_id for user_id, *_ in channel.sent) == sorted(
        [seed_data.student1_id, seed_data.student2_id]
    )


def test_admin_deadline_check_requires_instructor(client, seed_data, channel):
    r = client.post("/admin/deadlines/check", headers=auth_header(seed_data.assistant_id))

    assert r.status_code == 403
    assert channel.sent == []
