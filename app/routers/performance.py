import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.current_user import get_current_user
from app.core.deps import get_session_factory
from app.core.permissions import AuthorizationPolicy, get_authorization_policy
from app.core.timeutils import as_utc, utcnow
from app.models.enums import Role
from app.models.user import User
from app.schemas.performance import (
    AssessmentPerformanceRow,
    CoursePerformanceSummary,
    StudentPerformanceSummary,
)
from app.services.directories import SessionFactory, SqlAssessmentDirectory, SqlCourseDirectory
from app.services.performance import (
    assessment_performance,
    course_performance,
    student_performance,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_staff(policy: AuthorizationPolicy, course_id: int, user_id: int) -> None:
    # raises CourseNotFoundError (404) for an unknown course
    if not policy.is_staff(course_id, user_id):
        raise HTTPException(status_code=403, detail="Only course staff can view course performance")


@router.get("/{course_id}/performance/summary", response_model=CoursePerformanceSummary)
def course_performance_summary(
    course_id: int,
    start: datetime | None = Query(default=None, alias="from"),
    till: datetime | None = None,
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
    session_factory: SessionFactory = Depends(get_session_factory),
):
    _ensure_staff(policy, course_id, me.id)
    if start and till and as_utc(till) < as_utc(start):
        raise HTTPException(status_code=400, detail="'till' must not be before 'from'.")

    assessments = SqlAssessmentDirectory(session_factory).find_by_course(course_id)
    logger.info("Performance summary for course %s requested by user %s", course_id, me.id)
    return course_performance(course_id, assessments, now=utcnow(), start=start, end=till)


@router.get(
    "/{course_id}/performance/students/{student_id}",
    response_model=StudentPerformanceSummary,
)
def student_performance_summary(
    course_id: int,
    student_id: int,
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
    session_factory: SessionFactory = Depends(get_session_factory),
):
    if student_id != me.id:
        _ensure_staff(policy, course_id, me.id)

    courses = SqlCourseDirectory(session_factory)
    if courses.find_course(course_id) is None:
        raise HTTPException(status_code=404, detail="Course not found")
    enrollment = courses.find_enrollment(course_id, student_id)
    if enrollment is None or enrollment.role != Role.STUDENT:
        raise HTTPException(
            status_code=404,
            detail=f"User {student_id} is not a student of course {course_id}",
        )

    assessments = SqlAssessmentDirectory(session_factory).find_by_course(course_id)
    return student_performance(course_id, student_id, assessments)


@router.get(
    "/{course_id}/performance/by-assessment",
    response_model=list[AssessmentPerformanceRow],
)
def assessment_performance_summary(
    course_id: int,
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
    session_factory: SessionFactory = Depends(get_session_factory),
):
    _ensure_staff(policy, course_id, me.id)

    students = SqlCourseDirectory(session_factory).find_enrollments(course_id, Role.STUDENT)
    assessments = SqlAssessmentDirectory(session_factory).find_by_course(course_id)
    return assessment_performance(assessments, [e.user_id for e in students])
