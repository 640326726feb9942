"""
Feedback both ways inside a course: students review the course, staff review
students. Each enrollment holds at most one of each.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.permissions import AuthorizationPolicy, get_authorization_policy
from app.core.timeutils import utcnow
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.enums import Role
from app.models.user import User
from app.schemas.feedback import (
    CourseFeedbackCreate,
    CourseFeedbackRead,
    StudentFeedbackCreate,
    StudentFeedbackRead,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_course_exists(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def _ensure_student_enrollment(db: Session, course_id: int, user_id: int) -> Enrollment:
    enrollment = (
        db.query(Enrollment)
        .filter(
            Enrollment.course_id == course_id,
            Enrollment.user_id == user_id,
            Enrollment.role == Role.STUDENT,
        )
        .first()
    )
    if not enrollment:
        raise HTTPException(
            status_code=404,
            detail=f"User {user_id} is not a student of course {course_id}",
        )
    return enrollment


def _course_feedback(e: Enrollment) -> CourseFeedbackRead:
    return CourseFeedbackRead(
        course_id=e.course_id,
        user_id=e.user_id,
        feedback=e.course_feedback,
        note=e.course_note,
        created_at=e.course_feedback_at,
    )


def _student_feedback(e: Enrollment) -> StudentFeedbackRead:
    return StudentFeedbackRead(
        course_id=e.course_id,
        user_id=e.user_id,
        feedback=e.student_feedback,
        note=e.student_note,
        author_id=e.student_feedback_by,
        created_at=e.student_feedback_at,
    )


def _staff_course_ids(db: Session, user_id: int) -> set[int]:
    taught = {cid for (cid,) in db.query(Course.id).filter(Course.teacher_id == user_id)}
    assisted = {
        cid
        for (cid,) in db.query(Enrollment.course_id).filter(
            Enrollment.user_id == user_id, Enrollment.role == Role.ASSISTANT
        )
    }
    return taught | assisted


# ---------- course feedback (student -> course) ----------

@router.post(
    "/{course_id}/enrollments/{user_id}/course-feedback",
    response_model=CourseFeedbackRead,
    status_code=status.HTTP_201_CREATED,
)
def create_course_feedback(
    course_id: int,
    user_id: int,
    payload: CourseFeedbackCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    _ensure_course_exists(db, course_id)
    if user_id != me.id:
        raise HTTPException(status_code=403, detail="Course feedback can only be given by the student")
    enrollment = _ensure_student_enrollment(db, course_id, user_id)
    if enrollment.course_feedback is not None:
        raise HTTPException(
            status_code=409,
            detail=f"User {user_id} already reviewed course {course_id}",
        )

    enrollment.course_feedback = payload.feedback
    enrollment.course_note = payload.note
    enrollment.course_feedback_at = utcnow()

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(enrollment)
    logger.info("User %s reviewed course %s (%s/5)", user_id, course_id, payload.note)
    return _course_feedback(enrollment)


@router.get(
    "/{course_id}/enrollments/{user_id}/course-feedback",
    response_model=CourseFeedbackRead,
)
def get_course_feedback(
    course_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    if user_id != me.id and not policy.is_staff(course_id, me.id):
        raise HTTPException(status_code=403, detail="Only course staff can view other users' feedback")

    enrollment = _ensure_student_enrollment(db, course_id, user_id)
    if enrollment.course_feedback is None:
        raise HTTPException(status_code=404, detail="Course feedback not found")
    return _course_feedback(enrollment)


@router.get("/{course_id}/feedbacks", response_model=list[CourseFeedbackRead])
def list_course_feedbacks(
    course_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    if not policy.is_staff(course_id, me.id):
        raise HTTPException(status_code=403, detail="Only course staff can list course feedback")

    rows = (
        db.query(Enrollment)
        .filter(Enrollment.course_id == course_id, Enrollment.course_feedback.is_not(None))
        .order_by(Enrollment.course_feedback_at.asc(), Enrollment.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return [_course_feedback(e) for e in rows]


# ---------- student feedback (staff -> student) ----------

@router.post(
    "/{course_id}/enrollments/{user_id}/student-feedback",
    response_model=StudentFeedbackRead,
    status_code=status.HTTP_201_CREATED,
)
def create_student_feedback(
    course_id: int,
    user_id: int,
    payload: StudentFeedbackCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    if not policy.is_staff(course_id, me.id):
        raise HTTPException(status_code=403, detail="Only course staff can review students")
    enrollment = _ensure_student_enrollment(db, course_id, user_id)
    if enrollment.student_feedback is not None:
        raise HTTPException(
            status_code=409,
            detail=f"User {user_id} was already reviewed in course {course_id}",
        )

    enrollment.student_feedback = payload.feedback
    enrollment.student_note = payload.note
    enrollment.student_feedback_by = me.id
    enrollment.student_feedback_at = utcnow()

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(enrollment)
    logger.info("User %s reviewed student %s in course %s", me.id, user_id, course_id)
    return _student_feedback(enrollment)


@router.get(
    "/{course_id}/enrollments/{user_id}/student-feedback",
    response_model=StudentFeedbackRead,
)
def get_student_feedback(
    course_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    if user_id != me.id and not policy.is_staff(course_id, me.id):
        raise HTTPException(status_code=403, detail="Only course staff can view other users' feedback")

    enrollment = _ensure_student_enrollment(db, course_id, user_id)
    if enrollment.student_feedback is None:
        raise HTTPException(status_code=404, detail="Student feedback not found")
    return _student_feedback(enrollment)


@router.get("/student-feedbacks/{student_id}", response_model=list[StudentFeedbackRead])
def list_student_feedbacks(
    student_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    """A student's reviews across courses; staff only see their own courses' reviews."""
    q = db.query(Enrollment).filter(
        Enrollment.user_id == student_id, Enrollment.student_feedback.is_not(None)
    )
    if student_id != me.id:
        q = q.filter(Enrollment.course_id.in_(sorted(_staff_course_ids(db, me.id))))

    rows = (
        q.order_by(Enrollment.student_feedback_at.asc(), Enrollment.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return [_student_feedback(e) for e in rows]
