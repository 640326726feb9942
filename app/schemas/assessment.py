from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.enums import AssessmentType
from app.schemas.submission import SubmissionRead


class AssessmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    type: AssessmentType
    start_time: datetime
    deadline: datetime
    tolerance_time: int = Field(default=0, ge=0)
    exercise_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_times(self):
        if self.start_time >= self.deadline:
            raise ValueError("Start time must be before the deadline.")
        return self


class AssessmentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    deadline: Optional[datetime] = None
    tolerance_time: Optional[int] = Field(default=None, ge=0)
    exercise_count: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_times(self):
        if self.start_time and self.deadline and self.start_time >= self.deadline:
            raise ValueError("Start time must be before the deadline.")
        return self


class AssessmentRead(BaseModel):
    id: int
    course_id: int
    user_id: Optional[int]
    title: str
    description: Optional[str]
    type: AssessmentType
    start_time: datetime
    deadline: datetime
    tolerance_time: int
    exercise_count: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class AssessmentSnapshot(AssessmentRead):
    """An assessment together with its submissions keyed by user id."""

    submissions: dict[int, SubmissionRead] = Field(default_factory=dict)

    @field_validator("submissions", mode="before")
    @classmethod
    def key_by_user(cls, value):
        if isinstance(value, dict):
            return value
        return {s.user_id: SubmissionRead.model_validate(s) for s in value or []}
