# schoolhub/api/routers/subjects.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from schoolhub.core.db import get_db
from schoolhub.models.subject import Subject
from schoolhub.services.errors import NotFoundError
from schoolhub.services.subjects import SubjectService
from schoolhub.api.deps.auth import require_admin, require_staff

router = APIRouter(prefix="/subjects", tags=["Subjects"])

class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=10)
    description: Optional[str] = None

class SubjectOut(BaseModel):
    id: str
    name: str
    code: str
    description: Optional[str] = None
    is_active: bool

class AssignToGradeRequest(BaseModel):
    is_optional: bool = False


def _to_out(subject: Subject) -> SubjectOut:
    return SubjectOut(
        id=str(subject.id),
        name=subject.name,
        code=subject.code,
        description=subject.description,
        is_active=subject.is_active,
    )


@router.get("", response_model=List[SubjectOut])
def list_subjects(ctx = Depends(require_staff), db: Session = Depends(get_db)):
    return [_to_out(s) for s in SubjectService(db).list_subjects()]


@router.get("/{subject_id}", response_model=SubjectOut)
def get_subject(subject_id: UUID, ctx = Depends(require_staff), db: Session = Depends(get_db)):
    try:
        return _to_out(SubjectService(db).get_subject(subject_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=SubjectOut, status_code=201)
def create_subject(payload: SubjectCreate, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        subject = SubjectService(db).create_subject(payload.name, payload.code, payload.description)
        db.commit()
        return _to_out(subject)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create subject: {str(e)}")


@router.post("/{subject_id}/assign-to-grade/{grade_id}")
def assign_to_grade(
    subject_id: UUID,
    grade_id: UUID,
    payload: Optional[AssignToGradeRequest] = None,
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
):
    is_optional = payload.is_optional if payload else False
    try:
        link = SubjectService(db).assign_to_grade(subject_id, grade_id, is_optional)
        db.commit()
        return {
            "id": str(link.id),
            "subject_id": str(link.subject_id),
            "grade_id": str(link.grade_id),
            "is_optional": link.is_optional,
            "message": "Subject assigned to grade",
        }
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
