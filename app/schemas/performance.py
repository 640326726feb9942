from pydantic import BaseModel


class CoursePerformanceSummary(BaseModel):
    course_id: int
    total_assessments: int
    total_submissions: int
    average_grade: float | None
    completion_rate: float
    open_rate: float


class StudentPerformanceSummary(BaseModel):
    course_id: int
    student_id: int
    total_assessments: int
    submitted: int
    completed: int
    graded: int
    missing: int
    average_grade: float | None


class AssessmentPerformanceRow(BaseModel):
    assessment_id: int
    assessment_title: str
    total_students: int
    submitted: int
    completed: int
    graded: int
    missing: int
    average_grade: float | None
    completion_rate: float
