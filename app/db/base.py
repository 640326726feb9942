from app.db.base_class import Base  # noqa: F401

# import models so Base.metadata knows every table
from app.models import (  # noqa: F401
    activity,
    assessment,
    course,
    course_module,
    enrollment,
    submission,
    user,
)
