from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CourseFeedbackCreate(BaseModel):
    feedback: str = Field(min_length=1)
    note: int = Field(ge=1, le=5)


class StudentFeedbackCreate(BaseModel):
    feedback: str = Field(min_length=1)
    note: int = Field(ge=1, le=5)


class CourseFeedbackRead(BaseModel):
    course_id: int
    user_id: int
    feedback: str
    note: int
    created_at: Optional[datetime] = None


class StudentFeedbackRead(BaseModel):
    course_id: int
    user_id: int
    feedback: str
    note: int
    # teacher or assistant who wrote it
    author_id: Optional[int] = None
    created_at: Optional[datetime] = None
