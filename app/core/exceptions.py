from fastapi import HTTPException, status


class CourseNotFoundError(LookupError):
    def __init__(self, course_id: int):
        super().__init__(f"Course with ID {course_id} not found.")
        self.course_id = course_id


class ForbiddenActivityError(HTTPException):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=message)


class NotificationDeliveryError(RuntimeError):
    """The gateway did not accept a notification."""


class InvalidTopicError(ValueError):
    """A notification was requested on a topic the gateway does not know."""


class AuditWriteError(RuntimeError):
    """An activity record could not be persisted."""
