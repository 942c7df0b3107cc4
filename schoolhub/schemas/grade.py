# schoolhub/schemas/grade.py
from pydantic import BaseModel, Field
from typing import Optional
from schoolhub.models.grade import Grade, SchoolSection, CurriculumType

class GradeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    stream: str = Field(..., min_length=1, max_length=50)
    level: int = Field(..., ge=1)
    section: SchoolSection
    curriculum_type: CurriculumType = CurriculumType.LEGACY
    is_transitional: bool = False
    phase_out_year: Optional[int] = None
    introduced_year: Optional[int] = None
    valid_for_cohorts: Optional[str] = None
    homeroom_teacher_id: Optional[str] = None

class GradeOut(BaseModel):
    id: str
    name: str
    stream: str
    full_name: str
    level: int
    section: str
    curriculum_type: str
    is_active: bool
    is_transitional: bool
    phase_out_year: Optional[int] = None
    introduced_year: Optional[int] = None
    valid_for_cohorts: Optional[str] = None
    transition_status: str
    homeroom_teacher_id: Optional[str] = None
    student_count: Optional[int] = None

    @classmethod
    def from_grade(cls, grade: Grade, student_count: Optional[int] = None) -> "GradeOut":
        return cls(
            id=str(grade.id),
            name=grade.name,
            stream=grade.stream,
            full_name=grade.full_name,
            level=grade.level,
            section=grade.section.value,
            curriculum_type=grade.curriculum_type.value,
            is_active=grade.is_active,
            is_transitional=grade.is_transitional,
            phase_out_year=grade.phase_out_year,
            introduced_year=grade.introduced_year,
            valid_for_cohorts=grade.valid_for_cohorts,
            transition_status=grade.transition_status,
            homeroom_teacher_id=str(grade.homeroom_teacher_id) if grade.homeroom_teacher_id else None,
            student_count=student_count,
        )
