"""
Read/write access the core needs from storage.

The scheduler and the authorization policy only see the Protocols below; the
Sql* classes are the implementations the host wires in. Each call opens its own
session from the injected factory, so one directory instance can be shared by
the scheduler's worker threads.
"""
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import AuditWriteError
from app.models.activity import ActivityRecord
from app.models.assessment import Assessment
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.enums import Activity, Role
from app.schemas.activity import ActivityRecordRead
from app.schemas.assessment import AssessmentSnapshot
from app.schemas.course import CourseRead
from app.schemas.enrollment import EnrollmentRead

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


class CourseDirectory(Protocol):
    def find_open_courses(self, as_of: datetime) -> list[CourseRead]: ...

    def find_course(self, course_id: int) -> CourseRead | None: ...

    def find_enrollments(self, course_id: int, role: Role) -> list[EnrollmentRead]: ...

    def find_enrollment(self, course_id: int, user_id: int) -> EnrollmentRead | None: ...


class AssessmentDirectory(Protocol):
    def find_upcoming(
        self, course_id: int, deadline_from: datetime, deadline_to: datetime
    ) -> list[AssessmentSnapshot]: ...


class ActivityAudit(Protocol):
    def record(
        self, course_id: int, user_id: int, activity: Activity, at: datetime
    ) -> ActivityRecordRead: ...


class SqlCourseDirectory:
    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    def find_open_courses(self, as_of: datetime) -> list[CourseRead]:
        with self._session_factory() as db:
            rows = (
                db.query(Course)
                .filter(Course.start_date <= as_of, Course.end_date > as_of)
                .order_by(Course.id.asc())
                .all()
            )
            return [CourseRead.model_validate(c) for c in rows]

    def find_course(self, course_id: int) -> CourseRead | None:
        with self._session_factory() as db:
            course = db.get(Course, course_id)
            return CourseRead.model_validate(course) if course else None

    def find_enrollments(self, course_id: int, role: Role) -> list[EnrollmentRead]:
        with self._session_factory() as db:
            rows = (
                db.query(Enrollment)
                .filter(Enrollment.course_id == course_id, Enrollment.role == role)
                .order_by(Enrollment.user_id.asc())
                .all()
            )
            return [EnrollmentRead.model_validate(e) for e in rows]

    def find_enrollment(self, course_id: int, user_id: int) -> EnrollmentRead | None:
        with self._session_factory() as db:
            enrollment = (
                db.query(Enrollment)
                .filter(Enrollment.course_id == course_id, Enrollment.user_id == user_id)
                .first()
            )
            return EnrollmentRead.model_validate(enrollment) if enrollment else None


class SqlAssessmentDirectory:
    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    def find_upcoming(
        self, course_id: int, deadline_from: datetime, deadline_to: datetime
    ) -> list[AssessmentSnapshot]:
        with self._session_factory() as db:
            rows = (
                db.query(Assessment)
                .options(selectinload(Assessment.submissions))
                .filter(
                    Assessment.course_id == course_id,
                    Assessment.deadline >= deadline_from,
                    Assessment.deadline <= deadline_to,
                )
                .order_by(Assessment.deadline.asc(), Assessment.id.asc())
                .all()
            )
            return [AssessmentSnapshot.model_validate(a) for a in rows]

    def find_by_course(self, course_id: int) -> list[AssessmentSnapshot]:
        with self._session_factory() as db:
            rows = (
                db.query(Assessment)
                .options(selectinload(Assessment.submissions))
                .filter(Assessment.course_id == course_id)
                .order_by(Assessment.deadline.asc(), Assessment.id.asc())
                .all()
            )
            return [AssessmentSnapshot.model_validate(a) for a in rows]


class SqlActivityAudit:
    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    def record(
        self, course_id: int, user_id: int, activity: Activity, at: datetime
    ) -> ActivityRecordRead:
        with self._session_factory() as db:
            entry = ActivityRecord(
                course_id=course_id,
                user_id=user_id,
                activity=activity,
                created_at=at,
            )
            db.add(entry)
            try:
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise AuditWriteError(
                    f"Could not record {activity.value} by user {user_id} in course {course_id}"
                ) from exc
            db.refresh(entry)
            return ActivityRecordRead.model_validate(entry)
