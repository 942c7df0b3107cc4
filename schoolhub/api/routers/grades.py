# schoolhub/api/routers/grades.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
from pydantic import BaseModel

from schoolhub.core.db import get_db
from schoolhub.schemas.grade import GradeCreate, GradeOut
from schoolhub.services.errors import NotFoundError
from schoolhub.services.grades import GradeService
from schoolhub.api.deps.auth import require_admin, require_staff

router = APIRouter(prefix="/grades", tags=["Grades"])

class AssignTeacherRequest(BaseModel):
    teacher_id: UUID


@router.get("", response_model=List[GradeOut])
def list_grades(
    include_inactive: bool = Query(False),
    ctx = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return [GradeOut.from_grade(g, n) for g, n in GradeService(db).list_grades(include_inactive)]


@router.get("/{grade_id}", response_model=GradeOut)
def get_grade(grade_id: UUID, ctx = Depends(require_staff), db: Session = Depends(get_db)):
    service = GradeService(db)
    try:
        grade = service.get_grade(grade_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return GradeOut.from_grade(grade, service.student_count(grade.id))


@router.post("", response_model=GradeOut, status_code=201)
def create_grade(payload: GradeCreate, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        data = payload.model_dump()
        if data["homeroom_teacher_id"]:
            data["homeroom_teacher_id"] = UUID(data["homeroom_teacher_id"])
        grade = GradeService(db).create_grade(**data)
        db.commit()
        return GradeOut.from_grade(grade, 0)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create grade: {str(e)}")


@router.post("/{grade_id}/assign-homeroom-teacher", response_model=GradeOut)
def assign_homeroom_teacher(
    grade_id: UUID,
    payload: AssignTeacherRequest,
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
):
    service = GradeService(db)
    try:
        grade = service.assign_homeroom_teacher(grade_id, payload.teacher_id)
        db.commit()
        return GradeOut.from_grade(grade, service.student_count(grade.id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
