import logging
from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db, get_notification_channel, get_session_factory
from app.core.exceptions import NotificationDeliveryError
from app.core.permissions import AuthorizationPolicy, get_authorization_policy
from app.core.timeutils import as_utc, utcnow
from app.models.assessment import Assessment
from app.models.course import Course
from app.models.enums import Activity, AssessmentType, Role
from app.models.user import User
from app.schemas.assessment import AssessmentCreate, AssessmentRead, AssessmentUpdate
from app.services.directories import SessionFactory, SqlCourseDirectory
from app.services.notifications import NotificationChannel, NotificationTopic

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_course_exists(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def _ensure_assessment_exists(db: Session, assessment_id: int) -> Assessment:
    a = db.query(Assessment).filter(Assessment.id == assessment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail=f"Assessment with ID {assessment_id} not found")
    return a


def notify_new_assessment(
    session_factory: SessionFactory,
    channel: NotificationChannel,
    course_id: int,
    title: str,
    deadline: datetime,
) -> None:
    """Tell every student of the course about a new assessment. Runs after the response."""
    try:
        students = SqlCourseDirectory(session_factory).find_enrollments(course_id, Role.STUDENT)
    except SQLAlchemyError:
        logger.warning(
            "Assignment notices for course %s skipped: student lookup failed",
            course_id,
            exc_info=True,
        )
        return
    body = f'"{title}" was assigned, due {as_utc(deadline):%Y-%m-%d %H:%M} UTC.'
    for enrollment in students:
        try:
            channel.send(
                enrollment.user_id,
                "New assignment",
                body,
                NotificationTopic.TASK_ASSIGNMENT.value,
            )
        except NotificationDeliveryError as exc:
            logger.warning("Assignment notice to user %s failed: %s", enrollment.user_id, exc)


@router.post(
    "/courses/{course_id}/assessments",
    response_model=AssessmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_assessment(
    course_id: int,
    payload: AssessmentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
    session_factory: SessionFactory = Depends(get_session_factory),
    channel: NotificationChannel = Depends(get_notification_channel),
):
    _ensure_course_exists(db, course_id)
    policy.enforce(course_id, me.id, Activity.for_assessment("ADD", payload.type))

    a = Assessment(
        course_id=course_id,
        user_id=me.id,
        title=payload.title,
        description=payload.description,
        type=payload.type,
        start_time=as_utc(payload.start_time),
        deadline=as_utc(payload.deadline),
        tolerance_time=payload.tolerance_time,
        exercise_count=payload.exercise_count,
    )
    db.add(a)
    db.commit()
    db.refresh(a)

    logger.info("Assessment %s (%s) created in course %s by user %s", a.id, a.type.value, course_id, me.id)
    background_tasks.add_task(
        notify_new_assessment, session_factory, channel, course_id, a.title, a.deadline
    )
    return a


@router.get("/courses/{course_id}/assessments", response_model=list[AssessmentRead])
def list_assessments(
    course_id: int,
    kind: AssessmentType | None = Query(default=None, alias="type"),
    deadline_from: datetime | None = None,
    deadline_to: datetime | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_course_exists(db, course_id)

    q = db.query(Assessment).filter(Assessment.course_id == course_id)
    if kind is not None:
        q = q.filter(Assessment.type == kind)
    if deadline_from is not None:
        q = q.filter(Assessment.deadline >= as_utc(deadline_from))
    if deadline_to is not None:
        q = q.filter(Assessment.deadline <= as_utc(deadline_to))
    return q.order_by(Assessment.deadline.asc(), Assessment.id.asc()).all()


@router.get("/assessments/{assessment_id}", response_model=AssessmentRead)
def get_assessment(
    assessment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _ensure_assessment_exists(db, assessment_id)


@router.patch("/assessments/{assessment_id}", response_model=AssessmentRead)
def update_assessment(
    assessment_id: int,
    payload: AssessmentUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    a = _ensure_assessment_exists(db, assessment_id)
    activity = Activity.for_assessment("EDIT", a.type)
    policy.require_staff(a.course_id, me.id, activity)

    changes = payload.model_dump(exclude_unset=True)
    if "deadline" in changes and as_utc(changes["deadline"]) <= utcnow():
        raise HTTPException(status_code=400, detail="Deadline must be a future date.")
    start = as_utc(changes.get("start_time") or a.start_time)
    deadline = as_utc(changes.get("deadline") or a.deadline)
    if start >= deadline:
        raise HTTPException(status_code=400, detail="Start time must be before the deadline.")

    policy.enforce(a.course_id, me.id, activity)

    for field, value in changes.items():
        if isinstance(value, datetime):
            value = as_utc(value)
        setattr(a, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(a)
    return a


@router.delete("/assessments/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assessment(
    assessment_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    a = _ensure_assessment_exists(db, assessment_id)
    policy.enforce(a.course_id, me.id, Activity.for_assessment("DELETE", a.type))

    db.delete(a)
    db.commit()
    logger.info("Assessment %s deleted by user %s", assessment_id, me.id)
