# schoolhub/api/routers/academic_years.py
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from uuid import UUID
from pydantic import BaseModel, Field

from schoolhub.core.db import get_db
from schoolhub.models.academic import AcademicYear
from schoolhub.services.academics import AcademicYearService
from schoolhub.services.errors import NotFoundError
from schoolhub.services.promotion import PromotionFailure
from schoolhub.api.deps.auth import require_admin, require_staff

router = APIRouter(prefix="/academic-years", tags=["Academic Years"])

class AcademicYearCreate(BaseModel):
    name: str = Field(..., min_length=4, max_length=20)
    start_date: date
    end_date: date

class AcademicYearOut(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: date
    is_active: bool
    is_closed: bool


def _to_out(year: AcademicYear) -> AcademicYearOut:
    return AcademicYearOut(
        id=str(year.id),
        name=year.name,
        start_date=year.start_date,
        end_date=year.end_date,
        is_active=year.is_active,
        is_closed=year.is_closed,
    )


@router.get("", response_model=List[AcademicYearOut])
def list_years(ctx = Depends(require_staff), db: Session = Depends(get_db)):
    return [_to_out(y) for y in AcademicYearService(db).list_years()]


@router.get("/active", response_model=Optional[AcademicYearOut])
def active_year(ctx = Depends(require_staff), db: Session = Depends(get_db)):
    year = AcademicYearService(db).get_active_year()
    if not year:
        raise HTTPException(status_code=404, detail="No active academic year")
    return _to_out(year)


@router.post("", response_model=AcademicYearOut, status_code=201)
def create_year(payload: AcademicYearCreate, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        year = AcademicYearService(db).create_year(payload.name, payload.start_date, payload.end_date)
        db.commit()
        return _to_out(year)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create academic year: {str(e)}")


@router.post("/{year_id}/close", response_model=AcademicYearOut)
def close_year(year_id: UUID, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        year = AcademicYearService(db).close_year(year_id)
        db.commit()
        return _to_out(year)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{year_id}/promote-all")
def promote_all(
    year_id: UUID,
    force: bool = Query(False),
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        summary = AcademicYearService(db).promote_all(year_id, force=force, triggered_by=ctx["user"].id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    status_code = 200
    if summary.failure == PromotionFailure.ALREADY_PROMOTED:
        status_code = 409
    elif summary.failure == PromotionFailure.UNEXPECTED:
        status_code = 500
    return JSONResponse(status_code=status_code, content=summary.to_dict())


@router.post("/{year_id}/archive-graduates")
def archive_graduates(year_id: UUID, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        result = AcademicYearService(db).archive_graduates(year_id)
        db.commit()
        return result
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
