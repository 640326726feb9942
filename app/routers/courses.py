import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.permissions import AuthorizationPolicy, get_authorization_policy, require_instructor
from app.core.timeutils import as_utc
from app.models.activity import ActivityRecord
from app.models.course import Course
from app.models.enums import Activity
from app.models.user import User
from app.schemas.activity import ActivityRecordRead
from app.schemas.course import CourseCreate, CourseRead, CourseUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_course_exists(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.get("/", response_model=list[CourseRead])
def list_courses(
    open_at: datetime | None = Query(default=None, description="only courses open at this instant"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Course)
    if open_at is not None:
        at = as_utc(open_at)
        q = q.filter(Course.start_date <= at, Course.end_date > at)
    return q.order_by(Course.created_at.desc(), Course.id.desc()).all()


@router.post("/", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    instructor: User = Depends(require_instructor),
):
    course = Course(
        title=payload.title,
        description=payload.description,
        teacher_id=instructor.id,
        start_date=as_utc(payload.start_date),
        end_date=as_utc(payload.end_date),
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    logger.info("User %s created course %s", instructor.id, course.id)
    return course


@router.get("/{course_id}", response_model=CourseRead)
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _ensure_course_exists(db, course_id)


@router.patch("/{course_id}", response_model=CourseRead)
def update_course(
    course_id: int,
    payload: CourseUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    course = _ensure_course_exists(db, course_id)
    policy.require_staff(course_id, me.id, Activity.EDIT_COURSE)

    changes = payload.model_dump(exclude_unset=True)
    start = as_utc(changes.get("start_date") or course.start_date)
    end = as_utc(changes.get("end_date") or course.end_date)
    if end <= start:
        raise HTTPException(status_code=400, detail="End date must be after the start date.")

    policy.enforce(course_id, me.id, Activity.EDIT_COURSE)

    for field, value in changes.items():
        if isinstance(value, datetime):
            value = as_utc(value)
        setattr(course, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(course)
    return course


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    course = _ensure_course_exists(db, course_id)

    # deleting the whole course stays an owner-only action
    if course.teacher_id != me.id:
        raise HTTPException(status_code=403, detail="Only the course teacher can delete the course")

    db.delete(course)
    db.commit()
    logger.info("User %s deleted course %s", me.id, course_id)


@router.get("/{course_id}/activities", response_model=list[ActivityRecordRead])
def list_course_activities(
    course_id: int,
    user_id: int | None = None,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    _ensure_course_exists(db, course_id)
    if not policy.is_staff(course_id, me.id):
        raise HTTPException(status_code=403, detail="Only course staff can view the activity log")

    q = db.query(ActivityRecord).filter(ActivityRecord.course_id == course_id)
    if user_id is not None:
        q = q.filter(ActivityRecord.user_id == user_id)
    return q.order_by(ActivityRecord.created_at.asc(), ActivityRecord.id.asc()).all()
