# Import every model so Base.metadata knows all tables
from schoolhub.models.base import Base
from schoolhub.models.user import User, UserRole
from schoolhub.models.grade import Grade, GradePromotionRule, SchoolSection, CurriculumType
from schoolhub.models.student import Student
from schoolhub.models.academic import AcademicYear, PromotionRun
from schoolhub.models.subject import Subject, GradeSubject
from schoolhub.models.exam import ExamType, ExamScore, ReportCard

__all__ = [
    "Base",
    "User", "UserRole",
    "Grade", "GradePromotionRule", "SchoolSection", "CurriculumType",
    "Student",
    "AcademicYear", "PromotionRun",
    "Subject", "GradeSubject",
    "ExamType", "ExamScore", "ReportCard",
]
