# schoolhub/services/grades.py
from typing import List, Optional, Tuple
import uuid

from sqlalchemy import select, func, and_
from sqlalchemy.orm import Session

from schoolhub.models.grade import Grade, SchoolSection, CurriculumType
from schoolhub.models.student import Student
from schoolhub.models.user import User, UserRole
from schoolhub.services.errors import NotFoundError


class GradeService:
    def __init__(self, db: Session):
        self.db = db

    def list_grades(self, include_inactive: bool = False) -> List[Tuple[Grade, int]]:
        """Grades with their non-archived student counts, in promotion order."""
        counts = (
            select(Student.grade_id, func.count(Student.id).label("n"))
            .where(Student.is_archived == False)  # noqa: E712
            .group_by(Student.grade_id)
            .subquery()
        )
        query = (
            select(Grade, func.coalesce(counts.c.n, 0))
            .outerjoin(counts, counts.c.grade_id == Grade.id)
            .order_by(Grade.curriculum_type, Grade.level, Grade.stream)
        )
        if not include_inactive:
            query = query.where(Grade.is_active == True)  # noqa: E712
        return [(grade, int(n)) for grade, n in self.db.execute(query).all()]

    def get_grade(self, grade_id: uuid.UUID) -> Grade:
        grade = self.db.get(Grade, grade_id)
        if not grade:
            raise NotFoundError("Grade", grade_id)
        return grade

    def student_count(self, grade_id: uuid.UUID) -> int:
        return self.db.execute(
            select(func.count(Student.id)).where(
                and_(Student.grade_id == grade_id, Student.is_archived == False)  # noqa: E712
            )
        ).scalar_one()

    def create_grade(
        self,
        *,
        name: str,
        stream: str,
        level: int,
        section: SchoolSection,
        curriculum_type: CurriculumType = CurriculumType.LEGACY,
        is_transitional: bool = False,
        phase_out_year: Optional[int] = None,
        introduced_year: Optional[int] = None,
        valid_for_cohorts: Optional[str] = None,
        homeroom_teacher_id: Optional[uuid.UUID] = None,
    ) -> Grade:
        if introduced_year and phase_out_year and phase_out_year < introduced_year:
            raise ValueError("Phase-out year cannot be before the introduced year")

        existing = self.db.execute(
            select(Grade).where(
                Grade.name == name,
                Grade.stream == stream,
                Grade.curriculum_type == curriculum_type,
                Grade.is_active == True,  # noqa: E712
            )
        ).scalar_one_or_none()
        if existing:
            raise ValueError(f"Grade {existing.full_name} already exists")

        if homeroom_teacher_id:
            self._require_teacher(homeroom_teacher_id)

        grade = Grade(
            name=name,
            stream=stream,
            level=level,
            section=section,
            curriculum_type=curriculum_type,
            is_transitional=is_transitional,
            phase_out_year=phase_out_year,
            introduced_year=introduced_year,
            valid_for_cohorts=valid_for_cohorts,
            homeroom_teacher_id=homeroom_teacher_id,
        )
        self.db.add(grade)
        self.db.flush()
        return grade

    def assign_homeroom_teacher(self, grade_id: uuid.UUID, teacher_id: uuid.UUID) -> Grade:
        grade = self.get_grade(grade_id)
        self._require_teacher(teacher_id)
        grade.homeroom_teacher_id = teacher_id
        self.db.flush()
        return grade

    def _require_teacher(self, user_id: uuid.UUID) -> User:
        user = self.db.get(User, user_id)
        if not user or not user.is_active:
            raise NotFoundError("Teacher", user_id)
        if not user.has_role(UserRole.TEACHER.value):
            raise ValueError(f"User {user.username} is not a teacher")
        return user
