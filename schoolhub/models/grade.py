# schoolhub/models/grade.py - Curriculum stages and the promotion rule table
from __future__ import annotations
import enum
import uuid
from datetime import datetime
from sqlalchemy import (
    String, Integer, Boolean, DateTime, ForeignKey, Index, Uuid, Enum as SAEnum
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from schoolhub.models.base import Base


class SchoolSection(str, enum.Enum):
    PRESCHOOL = "Preschool"
    PRIMARY = "Primary"
    SECONDARY = "Secondary"


class CurriculumType(str, enum.Enum):
    LEGACY = "Legacy"
    COMPETENCY_BASED = "CompetencyBased"


class Grade(Base):
    __tablename__ = "grades"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), nullable=False)  # "Grade 6", "Form 1"
    stream: Mapped[str] = mapped_column(String(50), nullable=False)  # "Purple", "Grey"
    level: Mapped[int] = mapped_column(Integer, nullable=False)  # promotion order within a curriculum
    section: Mapped[SchoolSection] = mapped_column(SAEnum(SchoolSection, native_enum=False, length=16), nullable=False)
    curriculum_type: Mapped[CurriculumType] = mapped_column(
        SAEnum(CurriculumType, native_enum=False, length=16), nullable=False, default=CurriculumType.LEGACY
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Transition tracking
    is_transitional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    phase_out_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    introduced_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    valid_for_cohorts: Mapped[str | None] = mapped_column(String(100), nullable=True)  # "2022,2023,2024"

    homeroom_teacher_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    students: Mapped[list["Student"]] = relationship("Student", back_populates="grade")

    __table_args__ = (
        Index("ix_grades_family_level", "curriculum_type", "level", "section", "stream"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.stream}" if self.stream else self.name

    def is_valid_for_year(self, academic_year: int) -> bool:
        """True if this grade can receive students in ``academic_year``."""
        if not self.is_active:
            return False
        return self.will_be_available_in_year(academic_year)

    def will_be_available_in_year(self, year: int) -> bool:
        if self.introduced_year is not None and year < self.introduced_year:
            return False
        if self.phase_out_year is not None and year > self.phase_out_year:
            return False
        return True

    def cohort_years(self) -> list[int]:
        if not self.valid_for_cohorts:
            return []
        years = []
        for raw in self.valid_for_cohorts.split(","):
            raw = raw.strip()
            if raw.isdigit():
                years.append(int(raw))
        return years

    def is_valid_for_cohort(self, cohort_year: int) -> bool:
        """
        Cohort year is the year a student cohort started Grade 1.
        No restriction list means every cohort is allowed.
        """
        if not self.valid_for_cohorts:
            return True
        return cohort_year in self.cohort_years()

    @property
    def transition_status(self) -> str:
        if not self.is_transitional:
            return "Permanent"
        status = "Transitional"
        if self.phase_out_year is not None:
            status += f" (phases out {self.phase_out_year})"
        if self.introduced_year is not None:
            status += f" (introduced {self.introduced_year})"
        if self.valid_for_cohorts:
            status += f" (cohorts: {self.valid_for_cohorts})"
        return status


class GradePromotionRule(Base):
    """
    Explicit successor for a (curriculum, level, section) position.
    Positions without a rule advance to level + 1 in their own curriculum.
    """
    __tablename__ = "grade_promotion_rules"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    from_curriculum: Mapped[CurriculumType] = mapped_column(SAEnum(CurriculumType, native_enum=False, length=16), nullable=False)
    from_level: Mapped[int] = mapped_column(Integer, nullable=False)
    from_section: Mapped[SchoolSection] = mapped_column(SAEnum(SchoolSection, native_enum=False, length=16), nullable=False)
    to_curriculum: Mapped[CurriculumType] = mapped_column(SAEnum(CurriculumType, native_enum=False, length=16), nullable=False)
    to_level: Mapped[int] = mapped_column(Integer, nullable=False)
    to_section: Mapped[SchoolSection] = mapped_column(SAEnum(SchoolSection, native_enum=False, length=16), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("uq_promotion_rule_source", "from_curriculum", "from_level", "from_section", unique=True),
    )
