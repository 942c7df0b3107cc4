# schoolhub/api/routers/exams.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from decimal import Decimal
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field

from schoolhub.core.db import get_db
from schoolhub.models.exam import ExamScore, ExamType
from schoolhub.services.errors import NotFoundError
from schoolhub.services.exams import ExamService
from schoolhub.api.deps.auth import require_admin, require_staff, require_teacher

router = APIRouter(prefix="/exams", tags=["Exams"])

class ExamTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    order: int = 0

class ExamTypeOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    order: int

class ScoreIn(BaseModel):
    student_id: UUID
    subject_id: UUID
    exam_type_id: UUID
    score: Decimal = Field(..., ge=0, le=100)
    academic_year: int
    term: int = Field(..., ge=1, le=3)
    comments: Optional[str] = Field(None, max_length=500)

class ScoreOut(BaseModel):
    id: str
    student_id: str
    subject_id: str
    subject_name: str
    exam_type_id: str
    exam_type_name: str
    grade_id: str
    score: float
    academic_year: int
    term: int
    comments: Optional[str] = None
    recorded_at: datetime


def _type_out(exam_type: ExamType) -> ExamTypeOut:
    return ExamTypeOut(
        id=str(exam_type.id),
        name=exam_type.name,
        description=exam_type.description,
        order=exam_type.order,
    )


def _score_out(score: ExamScore) -> ScoreOut:
    return ScoreOut(
        id=str(score.id),
        student_id=str(score.student_id),
        subject_id=str(score.subject_id),
        subject_name=score.subject.name,
        exam_type_id=str(score.exam_type_id),
        exam_type_name=score.exam_type.name,
        grade_id=str(score.grade_id),
        score=float(score.score),
        academic_year=score.academic_year,
        term=score.term,
        comments=score.comments,
        recorded_at=score.recorded_at,
    )


@router.get("/types", response_model=List[ExamTypeOut])
def list_exam_types(ctx = Depends(require_staff), db: Session = Depends(get_db)):
    return [_type_out(t) for t in ExamService(db).list_exam_types()]


@router.post("/types", response_model=ExamTypeOut, status_code=201)
def create_exam_type(payload: ExamTypeCreate, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        exam_type = ExamService(db).create_exam_type(payload.name, payload.description, payload.order)
        db.commit()
        return _type_out(exam_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/student/{student_id}/scores", response_model=List[ScoreOut])
def student_scores(
    student_id: UUID,
    academic_year: int = Query(...),
    term: int = Query(..., ge=1, le=3),
    ctx = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return [_score_out(s) for s in ExamService(db).student_scores(student_id, academic_year, term)]


@router.get("/grade/{grade_id}/scores", response_model=List[ScoreOut])
def grade_scores(
    grade_id: UUID,
    academic_year: int = Query(...),
    term: int = Query(..., ge=1, le=3),
    ctx = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return [_score_out(s) for s in ExamService(db).grade_scores(grade_id, academic_year, term)]


@router.post("/scores", response_model=ScoreOut)
def record_score(payload: ScoreIn, ctx = Depends(require_teacher), db: Session = Depends(get_db)):
    """Create or overwrite a score; the student's current grade is stamped on it."""
    try:
        score = ExamService(db).record_score(recorded_by=ctx["user"].id, **payload.model_dump())
        db.commit()
        db.refresh(score)
        return _score_out(score)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to record score: {str(e)}")
