# services/promotion/service.py
"""
Grade promotion across the Legacy and CompetencyBased curricula.

Every operation reports business outcomes as dataclasses carrying a
PromotionFailure kind instead of raising, so a bulk pass keeps going past a
grade that cannot be promoted.
"""
import logging
from datetime import datetime
from typing import List, Optional
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from schoolhub.core.config import settings
from schoolhub.models.academic import PromotionRun
from schoolhub.models.grade import Grade, CurriculumType
from schoolhub.services.promotion.dataclasses import (
    PromotionFailure, PromotionResult, PromotionSummary, GradePromotionDetail,
    TransitionPolicy, TransitionStatus, Resolution,
)
from schoolhub.services.promotion.repo import PromotionRepo
from schoolhub.services.promotion.resolver import resolve_next_grade

logger = logging.getLogger(__name__)


def default_policy() -> TransitionPolicy:
    return TransitionPolicy(start_year=settings.TRANSITION_START_YEAR, end_year=settings.TRANSITION_END_YEAR)


class PromotionService:
    """Business logic layer for student promotion"""

    def __init__(self, db: Session, policy: Optional[TransitionPolicy] = None):
        self.db = db
        self.repo = PromotionRepo(db)
        self.policy = policy or default_policy()

    def resolve_next_grade(self, grade: Grade, academic_year: int) -> Resolution:
        return resolve_next_grade(self.repo.load_catalog(), grade, academic_year)

    def promote_student(self, student_id: uuid.UUID, academic_year: int) -> PromotionResult:
        try:
            student = self.repo.get_enrolled_student(student_id)
            if student is None:
                return PromotionResult(
                    success=False,
                    failure=PromotionFailure.NOT_FOUND,
                    error_message="Student not found or archived.",
                )

            current = student.grade
            resolution = resolve_next_grade(self.repo.load_catalog(), current, academic_year)
            if not resolution.ok:
                return PromotionResult(
                    success=False,
                    failure=resolution.failure,
                    error_message=resolution.reason,
                    from_grade=current.full_name,
                )

            target = resolution.target
            student.grade_id = target.id
            student.last_promoted_year = academic_year
            self.db.commit()

            logger.info(f"Promoted student {student.student_number} from {current.full_name} to {target.full_name}")
            return PromotionResult(
                success=True,
                students_promoted=1,
                from_grade=current.full_name,
                to_grade=target.full_name,
                message=f"Successfully promoted student from {current.full_name} to {target.full_name}.",
            )

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception(f"Error promoting student {student_id}")
            return PromotionResult(
                success=False,
                failure=PromotionFailure.UNEXPECTED,
                error_message=f"Error promoting student: {e}",
            )

    def promote_all(
        self,
        academic_year: int,
        academic_year_id: Optional[uuid.UUID] = None,
        force: bool = False,
        triggered_by: Optional[uuid.UUID] = None,
    ) -> PromotionSummary:
        """
        Advance every eligible student one stage. Successor grades are resolved
        once per grade and applied to the whole grade; changes are committed in a
        single transaction at the end of the pass.
        """
        summary = PromotionSummary()
        started_at = datetime.utcnow()

        try:
            if not force:
                previous = self.repo.find_completed_run(academic_year)
                if previous is not None:
                    summary.failure = PromotionFailure.ALREADY_PROMOTED
                    summary.run_id = str(previous.id)
                    summary.message = (
                        f"Students were already promoted for {academic_year} "
                        f"on {previous.completed_at:%Y-%m-%d %H:%M}. Use force=true to run again."
                    )
                    return summary

            catalog = self.repo.load_catalog()
            students_by_grade = self.repo.eligible_students_by_grade(academic_year)

            grades = [catalog.get(grade_id) for grade_id in students_by_grade]
            grades = [g for g in grades if g is not None and g.is_valid_for_year(academic_year)]
            grades.sort(key=lambda g: (g.level, g.stream, g.name))
            summary.total_grades_processed = len(grades)

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to load promotion data")
            summary.failure = PromotionFailure.UNEXPECTED
            summary.message = f"Critical error during bulk promotion: {e}"
            return summary

        for grade in grades:
            students = students_by_grade[grade.id]
            try:
                resolution = resolve_next_grade(catalog, grade, academic_year)
                if not resolution.ok:
                    summary.failed_promotions += 1
                    summary.errors.append(f"{grade.full_name}: {resolution.reason}")
                    logger.warning(f"Cannot promote {grade.full_name}: {resolution.reason}")
                    continue

                target = resolution.target
                for student in students:
                    student.grade_id = target.id
                    student.last_promoted_year = academic_year

                summary.successful_promotions += 1
                summary.total_students_promoted += len(students)
                summary.promotion_details.append(GradePromotionDetail(
                    from_grade=grade.full_name,
                    to_grade=target.full_name,
                    students_promoted=len(students),
                    message=f"Promoted {len(students)} students from {grade.full_name} to {target.full_name}",
                    curriculum_transition=_curriculum_transition(grade.curriculum_type, target.curriculum_type),
                ))
                logger.info(f"Promoted {len(students)} students from {grade.full_name} to {target.full_name}")

            except SQLAlchemyError as e:
                summary.failed_promotions += 1
                summary.errors.append(f"{grade.full_name}: Unexpected error - {e}")
                logger.exception(f"Unexpected error promoting {grade.full_name}")

        run = PromotionRun(
            academic_year=academic_year,
            academic_year_id=academic_year_id,
            status=_run_status(summary),
            grades_processed=summary.total_grades_processed,
            failed_grades=summary.failed_promotions,
            students_promoted=summary.total_students_promoted,
            triggered_by=triggered_by,
            started_at=started_at,
            completed_at=datetime.utcnow(),
        )

        try:
            self.db.add(run)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Bulk promotion commit failed")
            # The rollback undid every move in the pass
            for detail in summary.promotion_details:
                summary.errors.append(f"{detail.from_grade}: Unexpected error - {e}")
            summary.failed_promotions += summary.successful_promotions
            summary.successful_promotions = 0
            summary.total_students_promoted = 0
            summary.promotion_details = []
            summary.success = False
            summary.failure = PromotionFailure.UNEXPECTED
            summary.message = f"Critical error during bulk promotion: {e}"
            return summary

        summary.run_id = str(run.id)
        summary.success = summary.failed_promotions == 0
        if summary.success:
            summary.message = (
                f"Successfully promoted students from {summary.successful_promotions} grades. "
                f"Total students promoted: {summary.total_students_promoted}"
            )
        else:
            summary.message = (
                f"Promotion completed with {summary.failed_promotions} failures "
                f"out of {summary.total_grades_processed} grades."
            )
        return summary

    def get_available_targets(self, from_grade_id: uuid.UUID, academic_year: int) -> List[Grade]:
        catalog = self.repo.load_catalog()
        grade = catalog.get(from_grade_id)
        if grade is None:
            return []
        resolution = resolve_next_grade(catalog, grade, academic_year)
        return [resolution.target] if resolution.ok else []

    def list_runs(self, academic_year: Optional[int] = None) -> List[PromotionRun]:
        """Bulk promotion passes, newest first."""
        return self.repo.list_runs(academic_year)

    def get_transition_status(self, academic_year: int) -> TransitionStatus:
        status = TransitionStatus(
            academic_year=academic_year,
            is_transition_active=self.policy.is_active(academic_year),
            transition_phase=self.policy.phase_label(academic_year),
        )
        for grade in self.repo.load_catalog():
            if grade.curriculum_type == CurriculumType.LEGACY and grade.is_active:
                status.legacy_grades_active += 1
            if grade.curriculum_type == CurriculumType.COMPETENCY_BASED and grade.is_valid_for_year(academic_year):
                status.competency_grades_active += 1
            if grade.is_transitional and grade.is_valid_for_year(academic_year):
                status.transitional_grades_active += 1
        return status


def _curriculum_transition(source: CurriculumType, target: CurriculumType) -> Optional[str]:
    if source == target:
        return None
    return f"{source.value} → {target.value}"


def _run_status(summary: PromotionSummary) -> str:
    if summary.failed_promotions == 0:
        return "COMPLETED"
    if summary.successful_promotions > 0:
        return "PARTIAL"
    return "FAILED"


def get_promotion_service(db: Session) -> PromotionService:
    return PromotionService(db)
