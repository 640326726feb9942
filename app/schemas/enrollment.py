from datetime import datetime

from pydantic import BaseModel

from app.models.enums import Role
from app.schemas.course import CourseRead


class EnrollmentCreate(BaseModel):
    # omitted -> enroll the caller
    user_id: int | None = None
    role: Role = Role.STUDENT


class EnrollmentUpdate(BaseModel):
    favorite: bool


class EnrollmentRead(BaseModel):
    id: int
    course_id: int
    user_id: int
    role: Role
    favorite: bool
    created_at: datetime

    class Config:
        from_attributes = True


class EnrollmentWithCourseRead(EnrollmentRead):
    course: CourseRead
