"""
Course performance summaries.

Everything here works on AssessmentSnapshot lists, so the numbers can be
checked without a database. A submission is complete when it has one answer
per exercise; a grade counts once the submission has been corrected.
Averages are None when nothing has been graded; rates divide by at least one.
"""
from datetime import datetime, timezone

from app.core.timeutils import as_utc
from app.schemas.assessment import AssessmentSnapshot
from app.schemas.performance import (
    AssessmentPerformanceRow,
    CoursePerformanceSummary,
    StudentPerformanceSummary,
)
from app.schemas.submission import SubmissionRead

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def is_complete(assessment: AssessmentSnapshot, submission: SubmissionRead) -> bool:
    return len(submission.answers) == assessment.exercise_count


def is_graded(submission: SubmissionRead) -> bool:
    return submission.corrected_at is not None and submission.grade is not None


def _average(grades: list[float]) -> float | None:
    return sum(grades) / len(grades) if grades else None


def course_performance(
    course_id: int,
    assessments: list[AssessmentSnapshot],
    now: datetime,
    start: datetime | None = None,
    end: datetime | None = None,
) -> CoursePerformanceSummary:
    """
    Summary over ``[start, end]`` (default: everything up to ``now``).

    Assessments count when created inside the interval and are open when their
    deadline is still ahead of ``end``. Submissions count by submission time,
    grades by correction time.
    """
    start = as_utc(start) if start else EPOCH
    end = as_utc(end) if end else as_utc(now)

    created = open_ = submitted = completed = 0
    grades: list[float] = []

    for assessment in assessments:
        if start <= as_utc(assessment.created_at) <= end:
            created += 1
            if end < as_utc(assessment.deadline):
                open_ += 1

        for submission in assessment.submissions.values():
            if is_graded(submission) and start <= as_utc(submission.corrected_at) <= end:
                grades.append(submission.grade)
            if start <= as_utc(submission.submitted_at) <= end:
                submitted += 1
                if is_complete(assessment, submission):
                    completed += 1

    return CoursePerformanceSummary(
        course_id=course_id,
        total_assessments=created,
        total_submissions=submitted,
        average_grade=_average(grades),
        completion_rate=completed / max(1, submitted),
        open_rate=open_ / max(1, created),
    )


def student_performance(
    course_id: int,
    student_id: int,
    assessments: list[AssessmentSnapshot],
) -> StudentPerformanceSummary:
    submitted = completed = 0
    grades: list[float] = []

    for assessment in assessments:
        submission = assessment.submissions.get(student_id)
        if submission is None:
            continue
        submitted += 1
        if is_complete(assessment, submission):
            completed += 1
        if is_graded(submission):
            grades.append(submission.grade)

    return StudentPerformanceSummary(
        course_id=course_id,
        student_id=student_id,
        total_assessments=len(assessments),
        submitted=submitted,
        completed=completed,
        graded=len(grades),
        missing=len(assessments) - submitted,
        average_grade=_average(grades),
    )


def assessment_performance(
    assessments: list[AssessmentSnapshot],
    student_ids: list[int],
) -> list[AssessmentPerformanceRow]:
    """One row per assessment, measured against the course's current students."""
    students = set(student_ids)
    rows = []
    for assessment in assessments:
        submissions = [s for uid, s in assessment.submissions.items() if uid in students]
        grades = [s.grade for s in submissions if is_graded(s)]
        completed = sum(1 for s in submissions if is_complete(assessment, s))
        rows.append(
            AssessmentPerformanceRow(
                assessment_id=assessment.id,
                assessment_title=assessment.title,
                total_students=len(students),
                submitted=len(submissions),
                completed=completed,
                graded=len(grades),
                missing=len(students) - len(submissions),
                average_grade=_average(grades),
                completion_rate=completed / max(1, len(students)),
            )
        )
    return rows
