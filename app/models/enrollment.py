from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base_class import Base
from app.models.enums import Role


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(Enum(Role, name="enrollment_role"), nullable=False, default=Role.STUDENT)
    favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # the student's review of the course (note 1-5)
    course_feedback = Column(Text, nullable=True)
    course_note = Column(Integer, nullable=True)
    course_feedback_at = Column(DateTime(timezone=True), nullable=True)

    # course staff's review of the student (note 1-5)
    student_feedback = Column(Text, nullable=True)
    student_note = Column(Integer, nullable=True)
    student_feedback_by = Column(Integer, nullable=True)
    student_feedback_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "course_id", "user_id", name="uq_enrollments_course_user"
        ),
    )

    user = relationship("User", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")
