from pydantic import BaseModel, Field

from app.models.enums import DataType


class ModuleCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    order: int = 0


class ModuleUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    order: int | None = None


class ModuleRead(BaseModel):
    id: int
    course_id: int
    title: str
    description: str | None
    order: int

    class Config:
        from_attributes = True


class ResourceCreate(BaseModel):
    link: str = Field(min_length=1, max_length=2048)
    data_type: DataType
    order: int = 0


class ResourceUpdate(BaseModel):
    order: int


class ResourceRead(BaseModel):
    id: int
    module_id: int
    link: str
    data_type: DataType
    order: int

    class Config:
        from_attributes = True
