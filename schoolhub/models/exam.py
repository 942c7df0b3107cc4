# schoolhub/models/exam.py - Exam types, scores and generated report cards
from __future__ import annotations
import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    String, Integer, Numeric, DateTime, ForeignKey, Index, CheckConstraint, LargeBinary, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from schoolhub.models.base import Base

class ExamType(Base):
    __tablename__ = "exam_types"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(200), nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ExamScore(Base):
    __tablename__ = "exam_scores"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    subject_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False)
    exam_type_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("exam_types.id", ondelete="RESTRICT"), nullable=False)
    grade_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("grades.id", ondelete="RESTRICT"), index=True, nullable=False)
    score: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    academic_year: Mapped[int] = mapped_column(Integer, nullable=False)
    term: Mapped[int] = mapped_column(Integer, nullable=False)  # 1,2,3
    comments: Mapped[str | None] = mapped_column(String(500), nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    recorded_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    subject: Mapped["Subject"] = relationship("Subject")
    exam_type: Mapped["ExamType"] = relationship("ExamType")

    __table_args__ = (
        Index("uq_exam_score", "student_id", "subject_id", "exam_type_id", "academic_year", "term", unique=True),
        CheckConstraint("score >= 0 AND score <= 100", name="ck_exam_score_range"),
        CheckConstraint("term IN (1, 2, 3)", name="ck_exam_score_term"),
    )


class ReportCard(Base):
    __tablename__ = "report_cards"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    grade_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("grades.id", ondelete="RESTRICT"), nullable=False)
    academic_year: Mapped[int] = mapped_column(Integer, nullable=False)
    term: Mapped[int] = mapped_column(Integer, nullable=False)
    pdf_content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    generated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    generated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        Index("ix_report_cards_lookup", "grade_id", "academic_year", "term"),
    )
