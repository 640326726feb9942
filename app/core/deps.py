from collections.abc import Callable
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core import config
from app.db.session import SessionLocal
from app.services.deadline_scheduler import DeadlineScheduler
from app.services.directories import SqlAssessmentDirectory, SqlCourseDirectory
from app.services.notifications import PushNotificationService


# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# collaborators that must not share the request session (audit writes,
# background notifications) open their own sessions from this factory
def get_session_factory() -> Callable[[], Session]:
    return SessionLocal


@lru_cache
def get_notification_channel() -> PushNotificationService:
    return PushNotificationService(
        gateway_url=config.GATEWAY_URL,
        gateway_token=config.GATEWAY_TOKEN,
        timeout=config.NOTIFICATION_TIMEOUT_SECONDS,
    )


def build_deadline_scheduler(
    session_factory: Callable[[], Session],
    channel: PushNotificationService,
) -> DeadlineScheduler:
    return DeadlineScheduler(
        courses=SqlCourseDirectory(session_factory),
        assessments=SqlAssessmentDirectory(session_factory),
        channel=channel,
        lookahead=config.DEADLINE_LOOKAHEAD,
        max_workers=config.DEADLINE_WORKERS,
    )


def get_deadline_scheduler(
    session_factory=Depends(get_session_factory),
    channel=Depends(get_notification_channel),
) -> DeadlineScheduler:
    return build_deadline_scheduler(session_factory, channel)
