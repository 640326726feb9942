from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after the start date.")
        return self


class CourseUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class CourseRead(BaseModel):
    id: int
    title: str
    description: str | None = None
    teacher_id: int
    start_date: datetime
    end_date: datetime

    class Config:
        from_attributes = True
