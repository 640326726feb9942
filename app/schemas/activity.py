from datetime import datetime

from pydantic import BaseModel

from app.models.enums import Activity


class ActivityRecordRead(BaseModel):
    id: int
    course_id: int
    user_id: int
    activity: Activity
    created_at: datetime

    class Config:
        from_attributes = True
