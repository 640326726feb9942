from fastapi import APIRouter, Depends, Request

from app.core.deps import get_deadline_scheduler
from app.core.permissions import require_instructor
from app.core.timeutils import utcnow
from app.models.user import User
from app.schemas.deadline import DeadlineCheckRead
from app.services.deadline_scheduler import DeadlineScheduler

router = APIRouter()


@router.post("/deadlines/check", response_model=DeadlineCheckRead)
def run_deadline_check(
    request: Request,
    scheduler: DeadlineScheduler = Depends(get_deadline_scheduler),
    current_user: User = Depends(require_instructor),
):
    # go through the running ticker when there is one so the two never overlap
    ticker = getattr(request.app.state, "deadline_ticker", None)
    if ticker is not None:
        return ticker.fire()
    return scheduler.tick(utcnow())
