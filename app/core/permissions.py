"""
Who may change what inside a course.

Mutations of a course's sub-resources are allowed for the course teacher and
for users enrolled in the course as ASSISTANT. Teacher actions are owner
actions and are not audited; every allowed assistant action leaves one
ActivityRecord. Denials are not audited.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, HTTPException, status

from app.core.current_user import get_current_user
from app.core.deps import get_session_factory
from app.core.exceptions import AuditWriteError, CourseNotFoundError, ForbiddenActivityError
from app.core.timeutils import utcnow
from app.models.enums import Activity, Role
from app.models.user import User
from app.services.directories import (
    ActivityAudit,
    CourseDirectory,
    SqlActivityAudit,
    SqlCourseDirectory,
)

logger = logging.getLogger(__name__)

FORBIDDEN_REASON = "forbidden: actor is neither the course teacher nor an assistant"

_ACTIVITY_PHRASES = {
    Activity.EDIT_COURSE: "edit course {course_id}",
    Activity.ADD_MODULE: "add a module to course {course_id}",
    Activity.EDIT_MODULE: "edit a module in course {course_id}",
    Activity.DELETE_MODULE: "delete a module from course {course_id}",
    Activity.ADD_RESOURCE: "add a resource to course {course_id}",
    Activity.EDIT_RESOURCE: "edit a resource in course {course_id}",
    Activity.DELETE_RESOURCE: "delete a resource from course {course_id}",
    Activity.ADD_EXAM: "add an exam to course {course_id}",
    Activity.EDIT_EXAM: "edit an exam in course {course_id}",
    Activity.DELETE_EXAM: "delete an exam from course {course_id}",
    Activity.GRADE_EXAM: "grade an exam in course {course_id}",
    Activity.ADD_TASK: "add a task to course {course_id}",
    Activity.EDIT_TASK: "edit a task in course {course_id}",
    Activity.DELETE_TASK: "delete a task from course {course_id}",
    Activity.GRADE_TASK: "grade a task in course {course_id}",
    Activity.EDIT_ENROLLMENT: "edit an enrollment in course {course_id}",
}


def forbidden_message(course_id: int, user_id: int, activity: Activity) -> str:
    phrase = _ACTIVITY_PHRASES.get(
        activity, "perform this action on course {course_id}"
    ).format(course_id=course_id)
    return f"User {user_id} is not authorized to {phrase}."


def _forbidden_detail(course_id: int, user_id: int, activity: Activity) -> str:
    return (
        f"{forbidden_message(course_id, user_id, activity)} "
        "User has to be either the course teacher or an assistant."
    )


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "AuthorizationDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "AuthorizationDecision":
        return cls(allowed=False, reason=reason)


class AuthorizationPolicy:
    def __init__(
        self,
        courses: CourseDirectory,
        audit: ActivityAudit,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.courses = courses
        self.audit = audit
        self.clock = clock

    def authorize(
        self, course_id: int, acting_user_id: int, activity: Activity
    ) -> AuthorizationDecision:
        """
        Decide whether ``acting_user_id`` may perform ``activity`` on the course.

        Raises CourseNotFoundError when the course does not exist; that is a
        lookup failure for the caller, not a denial. Must run before the
        mutation it guards.
        """
        course = self.courses.find_course(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)

        if acting_user_id == course.teacher_id:
            return AuthorizationDecision.allow()

        enrollment = self.courses.find_enrollment(course_id, acting_user_id)
        if enrollment is None or enrollment.role != Role.ASSISTANT:
            logger.info(
                "Denied %s for user %s in course %s", activity.value, acting_user_id, course_id
            )
            return AuthorizationDecision.deny(FORBIDDEN_REASON)

        try:
            self.audit.record(course_id, acting_user_id, activity, self.clock())
        except AuditWriteError:
            # the action stays allowed; a missing audit row is reported, not enforced
            logger.warning(
                "Audit write failed for %s by user %s in course %s",
                activity.value,
                acting_user_id,
                course_id,
                exc_info=True,
            )
        return AuthorizationDecision.allow()

    def enforce(self, course_id: int, acting_user_id: int, activity: Activity) -> None:
        """authorize() that raises ForbiddenActivityError on deny."""
        decision = self.authorize(course_id, acting_user_id, activity)
        if not decision.allowed:
            raise ForbiddenActivityError(_forbidden_detail(course_id, acting_user_id, activity))

    def require_staff(self, course_id: int, acting_user_id: int, activity: Activity) -> None:
        """
        Reject non-staff up front, without an audit write.

        Routes call this before validating a request and enforce() right before
        the mutation, so a request rejected by validation leaves no audit record.
        """
        if not self.is_staff(course_id, acting_user_id):
            raise ForbiddenActivityError(_forbidden_detail(course_id, acting_user_id, activity))

    def is_staff(self, course_id: int, user_id: int) -> bool:
        course = self.courses.find_course(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        if user_id == course.teacher_id:
            return True
        enrollment = self.courses.find_enrollment(course_id, user_id)
        return enrollment is not None and enrollment.role == Role.ASSISTANT


def get_authorization_policy(
    session_factory=Depends(get_session_factory),
) -> AuthorizationPolicy:
    return AuthorizationPolicy(
        courses=SqlCourseDirectory(session_factory),
        audit=SqlActivityAudit(session_factory),
    )


def require_instructor(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "instructor":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Instructor role required",
        )
    return current_user
