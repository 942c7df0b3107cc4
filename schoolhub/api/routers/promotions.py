# schoolhub/api/routers/promotions.py
"""
Promotion endpoints. Every route is administrator-only; the academic year is
always supplied by the caller.
"""
import logging
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel

from schoolhub.core.db import get_db
from schoolhub.schemas.grade import GradeOut
from schoolhub.services.promotion import PromotionFailure, get_promotion_service
from schoolhub.api.deps.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/promotions", tags=["Promotions"])

FAILURE_STATUS = {
    PromotionFailure.NOT_FOUND: 404,
    PromotionFailure.TERMINAL_GRADE: 400,
    PromotionFailure.NO_VALID_TARGET: 400,
    PromotionFailure.ALREADY_PROMOTED: 409,
    PromotionFailure.UNEXPECTED: 500,
}

class PromoteAllRequest(BaseModel):
    academic_year: int
    force: bool = False

class TransitionStatusOut(BaseModel):
    academic_year: int
    is_transition_active: bool
    transition_phase: str
    legacy_grades_active: int
    competency_grades_active: int
    transitional_grades_active: int

class PromotionRunOut(BaseModel):
    id: str
    academic_year: int
    status: str
    grades_processed: int
    failed_grades: int
    students_promoted: int
    started_at: datetime
    completed_at: Optional[datetime] = None
    triggered_by: Optional[str] = None


def _status_for(failure: Optional[PromotionFailure]) -> int:
    if failure is None:
        return 200
    return FAILURE_STATUS.get(failure, 500)


@router.post("/students/{student_id}")
def promote_student(
    student_id: UUID,
    academic_year: int = Query(..., description="Academic year the promotion applies to"),
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = get_promotion_service(db).promote_student(student_id, academic_year)
    if not result.success:
        logger.info(f"Promotion of student {student_id} refused: {result.error_message}")
    return JSONResponse(status_code=_status_for(result.failure), content=result.to_dict())


@router.post("/all")
def promote_all(payload: PromoteAllRequest, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    """
    Bulk promotion for every grade. Per-grade failures are reported in the
    summary and do not fail the request; 409 means the year was already
    promoted and ``force`` was not set.
    """
    summary = get_promotion_service(db).promote_all(
        payload.academic_year,
        force=payload.force,
        triggered_by=ctx["user"].id,
    )
    status_code = _status_for(summary.failure)
    return JSONResponse(status_code=status_code, content=summary.to_dict())


@router.get("/targets/{grade_id}", response_model=List[GradeOut])
def available_targets(
    grade_id: UUID,
    academic_year: int = Query(...),
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
):
    targets = get_promotion_service(db).get_available_targets(grade_id, academic_year)
    return [GradeOut.from_grade(g) for g in targets]


@router.get("/transition-status", response_model=TransitionStatusOut)
def transition_status(
    academic_year: int = Query(...),
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
):
    status = get_promotion_service(db).get_transition_status(academic_year)
    return TransitionStatusOut(**status.__dict__)


@router.get("/runs", response_model=List[PromotionRunOut])
def promotion_runs(
    academic_year: Optional[int] = Query(None),
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Audit trail of bulk promotion passes, newest first."""
    runs = get_promotion_service(db).list_runs(academic_year)
    return [
        PromotionRunOut(
            id=str(r.id),
            academic_year=r.academic_year,
            status=r.status,
            grades_processed=r.grades_processed,
            failed_grades=r.failed_grades,
            students_promoted=r.students_promoted,
            started_at=r.started_at,
            completed_at=r.completed_at,
            triggered_by=str(r.triggered_by) if r.triggered_by else None,
        )
        for r in runs
    ]
