# schoolhub/api/routers/report_cards.py
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session, sessionmaker
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field

from schoolhub.core.db import get_db, get_session_factory
from schoolhub.models.exam import ReportCard
from schoolhub.services.errors import NotFoundError
from schoolhub.services.report_cards import ReportCardService
from schoolhub.api.deps.auth import require_admin, require_staff

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/report-cards", tags=["Report Cards"])

class GenerateRequest(BaseModel):
    academic_year: int
    term: int = Field(..., ge=1, le=3)

class ReportCardOut(BaseModel):
    id: str
    student_id: str
    grade_id: str
    academic_year: int
    term: int
    generated_at: datetime
    generated_by: Optional[str] = None

class ClassGenerationOut(BaseModel):
    generated: int
    report_cards: List[ReportCardOut]
    errors: List[str]


def _to_out(card: ReportCard) -> ReportCardOut:
    return ReportCardOut(
        id=str(card.id),
        student_id=str(card.student_id),
        grade_id=str(card.grade_id),
        academic_year=card.academic_year,
        term=card.term,
        generated_at=card.generated_at,
        generated_by=str(card.generated_by) if card.generated_by else None,
    )


@router.post("/generate/student/{student_id}", response_model=ReportCardOut)
def generate_student_report(
    student_id: UUID,
    payload: GenerateRequest,
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        card = ReportCardService(db).generate_report_card(
            student_id, payload.academic_year, payload.term, generated_by=ctx["user"].id
        )
        db.commit()
        return _to_out(card)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        logger.exception(f"Report card generation failed for student {student_id}")
        raise HTTPException(status_code=500, detail=f"Failed to generate report card: {str(e)}")


@router.post("/generate/class/{grade_id}", response_model=ClassGenerationOut)
def generate_class_reports(
    grade_id: UUID,
    payload: GenerateRequest,
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """Render cards for every enrolled student of the grade in parallel batches."""
    try:
        result = ReportCardService(db, session_factory).generate_class_report_cards(
            grade_id, payload.academic_year, payload.term, generated_by=ctx["user"].id
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    cards = [_to_out(c) for c in result.report_cards]
    return ClassGenerationOut(generated=len(cards), report_cards=cards, errors=result.errors)


@router.get("/student/{student_id}", response_model=List[ReportCardOut])
def student_report_cards(student_id: UUID, ctx = Depends(require_staff), db: Session = Depends(get_db)):
    return [_to_out(c) for c in ReportCardService(db).student_report_cards(student_id)]


@router.get("/class/{grade_id}/export")
def export_class(
    grade_id: UUID,
    academic_year: int = Query(...),
    term: int = Query(..., ge=1, le=3),
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        data = ReportCardService(db).export_class_zip(grade_id, academic_year, term)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    filename = f"report_cards_{academic_year}_T{term}.zip"
    return Response(
        content=data,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{report_card_id}/download")
def download_report_card(report_card_id: UUID, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        card, pdf = ReportCardService(db).get_pdf(report_card_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    filename = f"report_card_{card.academic_year}_T{card.term}_{card.student_id}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/all")
def delete_all_report_cards(ctx = Depends(require_admin), db: Session = Depends(get_db)):
    deleted = ReportCardService(db).delete_all()
    db.commit()
    logger.info(f"Deleted {deleted} report cards")
    return {"deleted": deleted, "message": f"Deleted {deleted} report cards"}
