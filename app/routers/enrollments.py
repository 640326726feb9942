import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.permissions import AuthorizationPolicy, get_authorization_policy
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.enums import Activity, Role
from app.models.user import User
from app.schemas.enrollment import (
    EnrollmentCreate,
    EnrollmentRead,
    EnrollmentUpdate,
    EnrollmentWithCourseRead,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_course_exists(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def _ensure_enrollment_exists(db: Session, course_id: int, user_id: int) -> Enrollment:
    enrollment = (
        db.query(Enrollment)
        .filter(Enrollment.course_id == course_id, Enrollment.user_id == user_id)
        .first()
    )
    if not enrollment:
        raise HTTPException(
            status_code=404,
            detail=f"Enrollment for user {user_id} in course {course_id} not found",
        )
    return enrollment


@router.get("/enrollments", response_model=list[EnrollmentWithCourseRead])
def list_user_enrollments(
    user_id: int | None = None,
    role: Role | None = None,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    """Enrollments of one user across courses (default: the caller)."""
    user_id = user_id if user_id is not None else me.id
    if user_id != me.id and me.role != "instructor":
        raise HTTPException(status_code=403, detail="Only instructors can list other users' enrollments")

    q = (
        db.query(Enrollment)
        .options(joinedload(Enrollment.course))
        .filter(Enrollment.user_id == user_id)
    )
    if role is not None:
        q = q.filter(Enrollment.role == role)
    return q.order_by(Enrollment.favorite.desc(), Enrollment.id.asc()).all()


@router.post(
    "/{course_id}/enrollments",
    response_model=EnrollmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_enrollment(
    course_id: int,
    payload: EnrollmentCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    course = _ensure_course_exists(db, course_id)
    user_id = payload.user_id if payload.user_id is not None else me.id

    # anyone may join as a student; enrolling others or granting staff roles is the teacher's call
    if (user_id != me.id or payload.role != Role.STUDENT) and course.teacher_id != me.id:
        raise HTTPException(
            status_code=403,
            detail="Only the course teacher can enroll other users or assign staff roles",
        )

    if db.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")

    enrollment = Enrollment(course_id=course_id, user_id=user_id, role=payload.role)
    db.add(enrollment)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail=f"User {user_id} is already enrolled in course {course_id}",
        )

    db.refresh(enrollment)
    logger.info("User %s enrolled in course %s as %s", user_id, course_id, payload.role.value)
    return enrollment


@router.get("/{course_id}/enrollments", response_model=list[EnrollmentRead])
def list_enrollments(
    course_id: int,
    role: Role | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_course_exists(db, course_id)
    q = db.query(Enrollment).filter(Enrollment.course_id == course_id)
    if role is not None:
        q = q.filter(Enrollment.role == role)
    return q.order_by(Enrollment.id.asc()).all()


@router.patch("/{course_id}/enrollments/{user_id}", response_model=EnrollmentRead)
def update_enrollment(
    course_id: int,
    user_id: int,
    payload: EnrollmentUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    enrollment = _ensure_enrollment_exists(db, course_id, user_id)

    # own favorite flag is personal; touching someone else's enrollment is privileged
    if user_id != me.id:
        policy.enforce(course_id, me.id, Activity.EDIT_ENROLLMENT)

    enrollment.favorite = payload.favorite

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(enrollment)
    return enrollment


@router.delete("/{course_id}/enrollments/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_enrollment(
    course_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    course = _ensure_course_exists(db, course_id)
    enrollment = _ensure_enrollment_exists(db, course_id, user_id)

    if user_id != me.id and course.teacher_id != me.id:
        raise HTTPException(
            status_code=403,
            detail="Only the course teacher can remove other users from the course",
        )

    db.delete(enrollment)
    db.commit()
    logger.info("User %s removed from course %s by %s", user_id, course_id, me.id)
