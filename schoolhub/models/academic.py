# schoolhub/models/academic.py - Academic calendar and bulk promotion audit
from __future__ import annotations
import uuid
from datetime import date, datetime
from sqlalchemy import (
    String, Integer, Boolean, ForeignKey, Date, DateTime, Index, CheckConstraint, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column
from schoolhub.models.base import Base

class AcademicYear(Base):
    __tablename__ = "academic_years"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(20), nullable=False)  # "2025" or "2024-2025"
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_academic_year_dates"),
    )

    @property
    def calendar_year(self) -> int:
        return self.start_date.year


class PromotionRun(Base):
    """One bulk promotion pass, stamped with the academic year it advanced."""
    __tablename__ = "promotion_runs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    academic_year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    academic_year_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("academic_years.id", ondelete="SET NULL"), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)  # COMPLETED|PARTIAL|FAILED
    grades_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_grades: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    students_promoted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    triggered_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('COMPLETED','PARTIAL','FAILED')", name="ck_promotion_run_status"),
        Index("ix_promotion_runs_year_status", "academic_year", "status"),
    )
