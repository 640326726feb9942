from datetime import datetime

from pydantic import BaseModel


class DeadlineCheckRead(BaseModel):
    started_at: datetime
    courses: int
    attempted: int
    succeeded: int
    failed: int
    course_failures: int
    skipped: int

    class Config:
        from_attributes = True
