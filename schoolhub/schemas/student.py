from pydantic import BaseModel, Field
from datetime import date
from uuid import UUID
from schoolhub.models.student import Student

class StudentCreate(BaseModel):
    student_number: str = Field(..., min_length=1, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=50)
    middle_name: str | None = None
    last_name: str = Field(..., min_length=1, max_length=50)
    date_of_birth: date | None = None
    gender: str | None = None
    address: str | None = None
    phone_number: str | None = None
    guardian_name: str | None = None
    guardian_phone: str | None = None
    grade_id: UUID
    enrollment_date: date | None = None

class StudentUpdate(BaseModel):
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    address: str | None = None
    phone_number: str | None = None
    guardian_name: str | None = None
    guardian_phone: str | None = None
    grade_id: UUID | None = None
    is_active: bool | None = None

class StudentOut(BaseModel):
    id: str
    student_number: str
    first_name: str
    middle_name: str | None = None
    last_name: str
    full_name: str
    date_of_birth: date | None = None
    gender: str | None = None
    guardian_name: str | None = None
    guardian_phone: str | None = None
    grade_id: str
    grade_name: str
    is_active: bool
    is_archived: bool
    enrollment_date: date
    archive_date: date | None = None
    last_promoted_year: int | None = None

    @classmethod
    def from_student(cls, s: Student) -> "StudentOut":
        return cls(
            id=str(s.id),
            student_number=s.student_number,
            first_name=s.first_name,
            middle_name=s.middle_name,
            last_name=s.last_name,
            full_name=s.full_name,
            date_of_birth=s.date_of_birth,
            gender=s.gender,
            guardian_name=s.guardian_name,
            guardian_phone=s.guardian_phone,
            grade_id=str(s.grade_id),
            grade_name=s.grade.full_name,
            is_active=s.is_active,
            is_archived=s.is_archived,
            enrollment_date=s.enrollment_date,
            archive_date=s.archive_date,
            last_promoted_year=s.last_promoted_year,
        )

class MoveGradeRequest(BaseModel):
    from_grade_id: UUID
    to_grade_id: UUID

class MoveGradeOut(BaseModel):
    message: str
    students_moved: int
