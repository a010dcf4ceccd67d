"""Database models package."""

from app.models.exam import Exam
from app.models.grade import Grade
from app.models.school import PeriodSystem, School
from app.models.school_class import SchoolClass
from app.models.student import Student
from app.models.subject import Subject

__all__ = [
    # School
    "School",
    "PeriodSystem",
    # Class
    "SchoolClass",
    # Student
    "Student",
    # Subject
    "Subject",
    # Exam
    "Exam",
    # Grade
    "Grade",
]
