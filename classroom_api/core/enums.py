from enum import Enum


class UserRole(str, Enum):
    TEACHER = "Teacher"
    STUDENT = "Student"


class SubmissionStatus(str, Enum):
    pending = "pending"
    graded = "graded"
