# schoolhub/services/academics.py
"""
Academic year management.

Closing a year and promoting students are separate actions: closing marks
the year done, promotion advances students and is triggered on its own.
"""
import logging
from datetime import date
from typing import List, Optional, Dict
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolhub.models.academic import AcademicYear
from schoolhub.models.student import Student
from schoolhub.services.errors import NotFoundError
from schoolhub.services.promotion import PromotionService, PromotionSummary
from schoolhub.services.promotion.repo import PromotionRepo

logger = logging.getLogger(__name__)


class AcademicYearService:
    def __init__(self, db: Session):
        self.db = db

    def list_years(self) -> List[AcademicYear]:
        return list(self.db.execute(
            select(AcademicYear).order_by(AcademicYear.start_date.desc())
        ).scalars().all())

    def get_active_year(self) -> Optional[AcademicYear]:
        return self.db.execute(
            select(AcademicYear).where(AcademicYear.is_active == True)  # noqa: E712
        ).scalars().first()

    def get_year(self, year_id: uuid.UUID) -> AcademicYear:
        year = self.db.get(AcademicYear, year_id)
        if not year:
            raise NotFoundError("Academic year", year_id)
        return year

    def create_year(self, name: str, start_date: date, end_date: date) -> AcademicYear:
        """Create a new year and make it the single active one."""
        if end_date < start_date:
            raise ValueError("End date must be on or after start date")

        existing = self.db.execute(
            select(AcademicYear.id).where(AcademicYear.name == name)
        ).scalar_one_or_none()
        if existing:
            raise ValueError(f"Academic year {name} already exists")

        for active in self.db.execute(
            select(AcademicYear).where(AcademicYear.is_active == True)  # noqa: E712
        ).scalars():
            active.is_active = False

        year = AcademicYear(name=name, start_date=start_date, end_date=end_date, is_active=True)
        self.db.add(year)
        self.db.flush()
        logger.info(f"Created academic year {name}")
        return year

    def close_year(self, year_id: uuid.UUID) -> AcademicYear:
        year = self.get_year(year_id)
        if year.is_closed:
            raise ValueError(f"Academic year {year.name} is already closed")
        year.is_closed = True
        year.is_active = False
        self.db.flush()
        logger.info(f"Closed academic year {year.name}")
        return year

    def promote_all(self, year_id: uuid.UUID, force: bool = False,
                    triggered_by: Optional[uuid.UUID] = None) -> PromotionSummary:
        year = self.get_year(year_id)
        return PromotionService(self.db).promote_all(
            year.calendar_year,
            academic_year_id=year.id,
            force=force,
            triggered_by=triggered_by,
        )

    def archive_graduates(self, year_id: uuid.UUID) -> Dict:
        """Archive every enrolled student sitting in a terminal grade."""
        year = self.get_year(year_id)
        catalog = PromotionRepo(self.db).load_catalog()
        terminal_ids = [g.id for g in catalog if catalog.is_terminal(g)]
        if not terminal_ids:
            return {"archived": 0, "message": "No terminal grades configured"}

        graduates = self.db.execute(
            select(Student).where(
                Student.grade_id.in_(terminal_ids),
                Student.is_archived == False,  # noqa: E712
            )
        ).scalars().all()

        today = date.today()
        for student in graduates:
            student.is_archived = True
            student.is_active = False
            student.archive_date = today
        self.db.flush()

        logger.info(f"Archived {len(graduates)} graduates for academic year {year.name}")
        return {"archived": len(graduates), "message": f"Archived {len(graduates)} graduates"}
