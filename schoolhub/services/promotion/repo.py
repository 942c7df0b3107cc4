# services/promotion/repo.py
from collections import defaultdict
from typing import Dict, List, Optional
import uuid

from sqlalchemy import select, or_
from sqlalchemy.orm import Session, joinedload

from schoolhub.models.grade import Grade, GradePromotionRule
from schoolhub.models.student import Student
from schoolhub.models.academic import PromotionRun
from schoolhub.services.promotion.catalog import GradeCatalog


class PromotionRepo:
    """Pure data access layer for promotion operations"""

    def __init__(self, db: Session):
        self.db = db

    def load_catalog(self) -> GradeCatalog:
        grades = self.db.execute(select(Grade)).scalars().all()
        rules = self.db.execute(select(GradePromotionRule)).scalars().all()
        return GradeCatalog(grades, rules)

    def get_enrolled_student(self, student_id: uuid.UUID) -> Optional[Student]:
        return self.db.execute(
            select(Student)
            .options(joinedload(Student.grade))
            .where(Student.id == student_id, Student.is_archived == False)  # noqa: E712
        ).scalar_one_or_none()

    def eligible_students_by_grade(self, academic_year: int) -> Dict[uuid.UUID, List[Student]]:
        """Non-archived students not yet promoted in ``academic_year``, grouped by grade."""
        students = self.db.execute(
            select(Student)
            .where(
                Student.is_archived == False,  # noqa: E712
                or_(Student.last_promoted_year.is_(None), Student.last_promoted_year != academic_year),
            )
            .order_by(Student.student_number)
        ).scalars().all()

        grouped: Dict[uuid.UUID, List[Student]] = defaultdict(list)
        for student in students:
            grouped[student.grade_id].append(student)
        return grouped

    def find_completed_run(self, academic_year: int) -> Optional[PromotionRun]:
        return self.db.execute(
            select(PromotionRun)
            .where(PromotionRun.academic_year == academic_year, PromotionRun.status == "COMPLETED")
            .order_by(PromotionRun.started_at.desc())
            .limit(1)
        ).scalar_one_or_none()

    def list_runs(self, academic_year: Optional[int] = None) -> List[PromotionRun]:
        query = select(PromotionRun).order_by(PromotionRun.started_at.desc())
        if academic_year is not None:
            query = query.where(PromotionRun.academic_year == academic_year)
        return list(self.db.execute(query).scalars().all())
