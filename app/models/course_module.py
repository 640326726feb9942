from sqlalchemy import Column, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base_class import Base
from app.models.enums import DataType


class CourseModule(Base):
    __tablename__ = "course_modules"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)

    course = relationship("Course", back_populates="modules")

    resources = relationship("ModuleResource", back_populates="module", cascade="all, delete-orphan")


class ModuleResource(Base):
    __tablename__ = "module_resources"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("course_modules.id", ondelete="CASCADE"), nullable=False, index=True)

    link = Column(String(2048), nullable=False)
    data_type = Column(Enum(DataType, name="resource_data_type"), nullable=False)
    order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("module_id", "link", name="uq_module_resource_link"),
    )

    module = relationship("CourseModule", back_populates="resources")
