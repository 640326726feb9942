from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SubmissionCreate(BaseModel):
    answers: list[str] = Field(default_factory=list)


class SubmissionRead(BaseModel):
    id: int
    assessment_id: int
    user_id: int
    answers: list[str]
    submitted_at: datetime
    grade: Optional[float] = None
    feedback: Optional[str] = None
    corrected_at: Optional[datetime] = None

    # computed against deadline + tolerance_time
    is_late: bool = False
    late_by_minutes: Optional[int] = None

    class Config:
        from_attributes = True


class SubmissionGradeUpdate(BaseModel):
    grade: float = Field(ge=0)
    feedback: Optional[str] = None
