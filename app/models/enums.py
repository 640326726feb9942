import enum


class Role(str, enum.Enum):
    TEACHER = "TEACHER"
    ASSISTANT = "ASSISTANT"
    STUDENT = "STUDENT"


class AssessmentType(str, enum.Enum):
    EXAM = "EXAM"
    TASK = "TASK"


class DataType(str, enum.Enum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    PDF = "PDF"
    LINK = "LINK"


class Activity(str, enum.Enum):
    EDIT_COURSE = "EDIT_COURSE"
    ADD_MODULE = "ADD_MODULE"
    EDIT_MODULE = "EDIT_MODULE"
    DELETE_MODULE = "DELETE_MODULE"
    ADD_RESOURCE = "ADD_RESOURCE"
    EDIT_RESOURCE = "EDIT_RESOURCE"
    DELETE_RESOURCE = "DELETE_RESOURCE"
    ADD_EXAM = "ADD_EXAM"
    EDIT_EXAM = "EDIT_EXAM"
    DELETE_EXAM = "DELETE_EXAM"
    GRADE_EXAM = "GRADE_EXAM"
    ADD_TASK = "ADD_TASK"
    EDIT_TASK = "EDIT_TASK"
    DELETE_TASK = "DELETE_TASK"
    GRADE_TASK = "GRADE_TASK"
    EDIT_ENROLLMENT = "EDIT_ENROLLMENT"

    @classmethod
    def for_assessment(cls, action: str, kind: AssessmentType) -> "Activity":
        """Activity.for_assessment("ADD", AssessmentType.EXAM) -> Activity.ADD_EXAM"""
        return cls(f"{action}_{kind.value}")
