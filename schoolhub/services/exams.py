# schoolhub/services/exams.py
from decimal import Decimal
from typing import List, Optional
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from schoolhub.models.exam import ExamType, ExamScore
from schoolhub.models.student import Student
from schoolhub.models.subject import Subject
from schoolhub.services.errors import NotFoundError

VALID_TERMS = (1, 2, 3)


class ExamService:
    def __init__(self, db: Session):
        self.db = db

    def list_exam_types(self) -> List[ExamType]:
        return list(self.db.execute(select(ExamType).order_by(ExamType.order)).scalars().all())

    def create_exam_type(self, name: str, description: Optional[str] = None, order: int = 0) -> ExamType:
        if self.db.execute(select(ExamType.id).where(ExamType.name == name)).scalar_one_or_none():
            raise ValueError(f"Exam type '{name}' already exists")
        exam_type = ExamType(name=name, description=description, order=order)
        self.db.add(exam_type)
        self.db.flush()
        return exam_type

    def student_scores(self, student_id: uuid.UUID, academic_year: int, term: int) -> List[ExamScore]:
        return list(self.db.execute(
            select(ExamScore)
            .options(joinedload(ExamScore.subject), joinedload(ExamScore.exam_type))
            .where(
                ExamScore.student_id == student_id,
                ExamScore.academic_year == academic_year,
                ExamScore.term == term,
            )
        ).scalars().all())

    def grade_scores(self, grade_id: uuid.UUID, academic_year: int, term: int) -> List[ExamScore]:
        return list(self.db.execute(
            select(ExamScore)
            .options(joinedload(ExamScore.subject), joinedload(ExamScore.exam_type))
            .where(
                ExamScore.grade_id == grade_id,
                ExamScore.academic_year == academic_year,
                ExamScore.term == term,
            )
        ).scalars().all())

    def record_score(
        self,
        *,
        student_id: uuid.UUID,
        subject_id: uuid.UUID,
        exam_type_id: uuid.UUID,
        score: Decimal,
        academic_year: int,
        term: int,
        recorded_by: Optional[uuid.UUID] = None,
        comments: Optional[str] = None,
    ) -> ExamScore:
        """Create or overwrite the score for one student/subject/exam/term."""
        if term not in VALID_TERMS:
            raise ValueError("Term must be 1, 2 or 3")
        if score < 0 or score > 100:
            raise ValueError("Score must be between 0 and 100")

        student = self.db.get(Student, student_id)
        if not student or student.is_archived:
            raise NotFoundError("Student", student_id)
        if not self.db.get(Subject, subject_id):
            raise NotFoundError("Subject", subject_id)
        if not self.db.get(ExamType, exam_type_id):
            raise NotFoundError("Exam type", exam_type_id)

        existing = self.db.execute(
            select(ExamScore).where(
                ExamScore.student_id == student_id,
                ExamScore.subject_id == subject_id,
                ExamScore.exam_type_id == exam_type_id,
                ExamScore.academic_year == academic_year,
                ExamScore.term == term,
            )
        ).scalar_one_or_none()

        if existing:
            existing.score = score
            existing.comments = comments
            existing.recorded_by = recorded_by
            existing.grade_id = student.grade_id
            exam_score = existing
        else:
            exam_score = ExamScore(
                student_id=student_id,
                subject_id=subject_id,
                exam_type_id=exam_type_id,
                grade_id=student.grade_id,
                score=score,
                academic_year=academic_year,
                term=term,
                comments=comments,
                recorded_by=recorded_by,
            )
            self.db.add(exam_score)

        self.db.flush()
        return exam_score
