from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.db.base_class import Base
from app.models.enums import AssessmentType


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    # teacher or assistant who created it
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(Enum(AssessmentType, name="assessment_type"), nullable=False)

    start_time = Column(DateTime(timezone=True), nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=False, index=True)
    tolerance_time = Column(Integer, nullable=False, default=0)  # minutes
    # a submission is complete when it answers every exercise
    exercise_count = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    course = relationship("Course", back_populates="assessments")

    submissions = relationship("Submission", back_populates="assessment", cascade="all, delete-orphan")
