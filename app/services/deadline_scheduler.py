"""
Deadline reminders.

Every tick looks at each open course, finds assessments whose deadline falls
in ``[now, now + lookahead]`` and reminds every enrolled student who has not
submitted yet. Nothing is remembered between ticks: a deadline that stays
inside the window for two ticks produces two reminders.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.core.config import DEADLINE_LOOKAHEAD, DEADLINE_WORKERS
from app.core.exceptions import InvalidTopicError
from app.core.timeutils import deadline_window
from app.models.enums import Role
from app.schemas.assessment import AssessmentSnapshot
from app.schemas.course import CourseRead
from app.services.directories import AssessmentDirectory, CourseDirectory
from app.services.notifications import NotificationChannel, NotificationTopic

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Upcoming deadline"


def reminder_body(assessment_title: str) -> str:
    return f'The assignment "{assessment_title}" is due soon.'


@dataclass(frozen=True)
class Reminder:
    course_id: int
    user_id: int
    assessment_id: int
    assessment_title: str


@dataclass
class TickSummary:
    started_at: datetime
    courses: int = 0
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    course_failures: int = 0
    skipped: int = 0


def pending_reminders(
    course: CourseRead,
    student_ids: list[int],
    assessments: list[AssessmentSnapshot],
) -> list[Reminder]:
    """Every (student, assessment) pair without a submission."""
    reminders = []
    for user_id in student_ids:
        for assessment in assessments:
            if user_id in assessment.submissions:
                continue
            reminders.append(
                Reminder(
                    course_id=course.id,
                    user_id=user_id,
                    assessment_id=assessment.id,
                    assessment_title=assessment.title,
                )
            )
    return reminders


class DeadlineScheduler:
    def __init__(
        self,
        courses: CourseDirectory,
        assessments: AssessmentDirectory,
        channel: NotificationChannel,
        lookahead: timedelta = DEADLINE_LOOKAHEAD,
        max_workers: int = DEADLINE_WORKERS,
    ):
        self.courses = courses
        self.assessments = assessments
        self.channel = channel
        self.lookahead = lookahead
        self.max_workers = max_workers

    def tick(self, now: datetime, cancel: threading.Event | None = None) -> TickSummary:
        """
        Run one scan and return once every reminder has been attempted.

        Per-course lookup failures and per-reminder delivery failures are
        logged and counted, never raised. When ``cancel`` is set no further
        reminders are sent: queued ones are skipped when a worker picks them
        up, and sends already in flight are awaited.
        """
        window = deadline_window(now, self.lookahead)
        summary = TickSummary(started_at=window[0])

        open_courses = self.courses.find_open_courses(as_of=window[0])
        summary.courses = len(open_courses)
        if not open_courses:
            logger.info("Deadline check at %s: no open courses", window[0].isoformat())
            return summary

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="deadline-check"
        ) as pool:
            lookups: dict[Future, CourseRead] = {
                pool.submit(self._course_reminders, course, window): course
                for course in open_courses
            }
            wait(lookups)

            reminders: list[Reminder] = []
            for future, course in lookups.items():
                exc = future.exception()
                if exc is not None:
                    summary.course_failures += 1
                    logger.warning(
                        "Deadline check skipped course %s: %s", course.id, exc, exc_info=exc
                    )
                    continue
                reminders.extend(future.result())

            dispatches: dict[Future, Reminder] = {}
            for reminder in reminders:
                if cancel is not None and cancel.is_set():
                    summary.skipped += 1
                    continue
                dispatches[pool.submit(self._dispatch, reminder, cancel)] = reminder
            wait(dispatches)

        invalid_topic: InvalidTopicError | None = None
        for future, reminder in dispatches.items():
            exc = future.exception()
            if exc is None and not future.result():
                summary.skipped += 1
                continue
            summary.attempted += 1
            if exc is None:
                summary.succeeded += 1
                continue
            summary.failed += 1
            if isinstance(exc, InvalidTopicError):
                invalid_topic = exc
                continue
            logger.warning(
                "Deadline reminder for user %s (assessment %s, course %s) failed: %s",
                reminder.user_id,
                reminder.assessment_id,
                reminder.course_id,
                exc,
            )

        if invalid_topic is not None:
            raise invalid_topic

        if summary.skipped:
            logger.warning("Deadline check cancelled; %s reminders not sent", summary.skipped)
        logger.info(
            "Deadline check at %s: %s courses, %s reminders (%s ok, %s failed), %s course errors",
            window[0].isoformat(),
            summary.courses,
            summary.attempted,
            summary.succeeded,
            summary.failed,
            summary.course_failures,
        )
        return summary

    def _course_reminders(
        self, course: CourseRead, window: tuple[datetime, datetime]
    ) -> list[Reminder]:
        enrollments = self.courses.find_enrollments(course.id, Role.STUDENT)
        if not enrollments:
            return []
        upcoming = self.assessments.find_upcoming(course.id, window[0], window[1])
        return pending_reminders(course, [e.user_id for e in enrollments], upcoming)

    def _dispatch(self, reminder: Reminder, cancel: threading.Event | None = None) -> bool:
        """Send one reminder; False when the tick was cancelled before it ran."""
        if cancel is not None and cancel.is_set():
            return False
        self.channel.send(
            reminder.user_id,
            REMINDER_TITLE,
            reminder_body(reminder.assessment_title),
            NotificationTopic.DEADLINE_REMINDER.value,
        )
        return True
