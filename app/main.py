import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core import config
from app.core.deps import build_deadline_scheduler, get_notification_channel
from app.core.exceptions import CourseNotFoundError
from app.core.logging_middleware import LoggingMiddleware
from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.routers.admin import router as admin_router
from app.routers.assessments import router as assessments_router
from app.routers.auth import router as auth_router
from app.routers.courses import router as courses_router
from app.routers.enrollments import router as enrollments_router
from app.routers.feedback import router as feedback_router
from app.routers.modules import router as modules_router
from app.routers.performance import router as performance_router
from app.routers.submissions import router as submissions_router
from app.services.ticker import IntervalTicker

logging.basicConfig(level=config.LOG_LEVEL)

logger = logging.getLogger(__name__)

app = FastAPI(title="Course Platform")

# Middleware
app.add_middleware(LoggingMiddleware)


@app.exception_handler(CourseNotFoundError)
def course_not_found_handler(request: Request, exc: CourseNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


@app.on_event("startup")
def on_startup():
    init_db()
    app.state.deadline_ticker = None
    if not config.deadline_scheduler_enabled():
        logger.info("Deadline reminders disabled")
        return

    scheduler = build_deadline_scheduler(SessionLocal, get_notification_channel())
    ticker = IntervalTicker(config.DEADLINE_CHECK_INTERVAL, scheduler.tick)
    ticker.start()
    app.state.deadline_ticker = ticker


@app.on_event("shutdown")
def on_shutdown():
    ticker = getattr(app.state, "deadline_ticker", None)
    if ticker is not None:
        ticker.stop(timeout=30)
        app.state.deadline_ticker = None


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])
# literal paths (/courses/enrollments) must be registered before /courses/{course_id}
app.include_router(enrollments_router, prefix="/courses", tags=["enrollments"])
app.include_router(feedback_router, prefix="/courses", tags=["feedback"])
app.include_router(courses_router, prefix="/courses", tags=["courses"])
app.include_router(modules_router, prefix="/courses", tags=["modules"])
app.include_router(performance_router, prefix="/courses", tags=["performance"])
app.include_router(assessments_router, tags=["assessments"])
app.include_router(submissions_router, tags=["submissions"])
