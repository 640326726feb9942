from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.permissions import AuthorizationPolicy, get_authorization_policy
from app.core.timeutils import late_by_minutes, utcnow
from app.models.assessment import Assessment
from app.models.enrollment import Enrollment
from app.models.enums import Activity, Role
from app.models.submission import Submission
from app.models.user import User
from app.schemas.submission import SubmissionCreate, SubmissionGradeUpdate, SubmissionRead

router = APIRouter()


def _ensure_assessment_exists(db: Session, assessment_id: int) -> Assessment:
    a = db.query(Assessment).filter(Assessment.id == assessment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Assessment not found")
    return a


def _ensure_student_enrolled(db: Session, course_id: int, user_id: int) -> None:
    enrolled = (
        db.query(Enrollment)
        .filter(
            Enrollment.course_id == course_id,
            Enrollment.user_id == user_id,
            Enrollment.role == Role.STUDENT,
        )
        .first()
        is not None
    )
    if not enrolled:
        raise HTTPException(
            status_code=403,
            detail=f"User {user_id} is not authorized to submit the assessment. "
            f"Only course {course_id} students can submit it.",
        )


def _with_late_flags(assessment: Assessment, submission: Submission) -> SubmissionRead:
    """
    Late means past deadline + tolerance_time. late_by_minutes still reports
    minutes past the bare deadline so staff can see submissions that used the tolerance.
    """
    out = SubmissionRead.model_validate(submission)
    minutes = late_by_minutes(assessment.deadline, submission.submitted_at)
    out.late_by_minutes = minutes
    if minutes is not None:
        tolerated = timedelta(minutes=assessment.tolerance_time or 0)
        out.is_late = minutes * 60 > tolerated.total_seconds()
    return out


@router.post(
    "/assessments/{assessment_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_assessment(
    assessment_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    assessment = _ensure_assessment_exists(db, assessment_id)
    _ensure_student_enrolled(db, assessment.course_id, me.id)

    s = Submission(
        assessment_id=assessment_id,
        user_id=me.id,
        answers=payload.answers,
        submitted_at=utcnow(),
    )
    db.add(s)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail=f"Submission for user {me.id} already exists",
        )

    db.refresh(s)
    return _with_late_flags(assessment, s)


@router.get(
    "/assessments/{assessment_id}/submissions",
    response_model=list[SubmissionRead],
)
def list_submissions(
    assessment_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    assessment = _ensure_assessment_exists(db, assessment_id)
    if not policy.is_staff(assessment.course_id, me.id):
        raise HTTPException(
            status_code=403,
            detail="Only course staff can view submissions",
        )

    subs = (
        db.query(Submission)
        .filter(Submission.assessment_id == assessment_id)
        .order_by(Submission.submitted_at.asc(), Submission.id.asc())
        .all()
    )
    return [_with_late_flags(assessment, s) for s in subs]


@router.get(
    "/assessments/{assessment_id}/submissions/{user_id}",
    response_model=SubmissionRead,
)
def get_submission(
    assessment_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    assessment = _ensure_assessment_exists(db, assessment_id)
    if user_id != me.id and not policy.is_staff(assessment.course_id, me.id):
        raise HTTPException(status_code=403, detail="Only course staff can view other submissions")

    sub = (
        db.query(Submission)
        .filter(Submission.assessment_id == assessment_id, Submission.user_id == user_id)
        .first()
    )
    if not sub:
        raise HTTPException(
            status_code=404,
            detail=f"Submission of user {user_id} not found in assessment {assessment_id}",
        )
    return _with_late_flags(assessment, sub)


@router.patch(
    "/assessments/{assessment_id}/submissions/{user_id}/grade",
    response_model=SubmissionRead,
)
def grade_submission(
    assessment_id: int,
    user_id: int,
    payload: SubmissionGradeUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    policy: AuthorizationPolicy = Depends(get_authorization_policy),
):
    assessment = _ensure_assessment_exists(db, assessment_id)

    sub = (
        db.query(Submission)
        .filter(Submission.assessment_id == assessment_id, Submission.user_id == user_id)
        .first()
    )
    if not sub:
        raise HTTPException(status_code=404, detail="Submission not found")

    policy.enforce(assessment.course_id, me.id, Activity.for_assessment("GRADE", assessment.type))

    sub.grade = payload.grade
    sub.feedback = payload.feedback
    sub.corrected_at = utcnow()

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sub)
    return _with_late_flags(assessment, sub)
