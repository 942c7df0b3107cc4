# schoolhub/api/routers/students.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from schoolhub.core.db import get_db
from schoolhub.schemas.student import StudentCreate, StudentUpdate, StudentOut, MoveGradeRequest, MoveGradeOut
from schoolhub.services.errors import NotFoundError
from schoolhub.services.students import StudentService
from schoolhub.api.deps.auth import require_admin, require_staff

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("", response_model=List[StudentOut])
def list_students(
    include_archived: bool = Query(False),
    ctx = Depends(require_staff),
    db: Session = Depends(get_db),
):
    return [StudentOut.from_student(s) for s in StudentService(db).list_students(include_archived)]


@router.get("/grade/{grade_id}", response_model=List[StudentOut])
def list_students_by_grade(grade_id: UUID, ctx = Depends(require_staff), db: Session = Depends(get_db)):
    return [StudentOut.from_student(s) for s in StudentService(db).list_by_grade(grade_id)]


@router.get("/{student_id}", response_model=StudentOut)
def get_student(student_id: UUID, ctx = Depends(require_staff), db: Session = Depends(get_db)):
    try:
        return StudentOut.from_student(StudentService(db).get_student(student_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=StudentOut, status_code=201)
def create_student(payload: StudentCreate, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    """Enroll a new student directly into a grade."""
    try:
        student = StudentService(db).create_student(payload.model_dump())
        db.commit()
        db.refresh(student)
        return StudentOut.from_student(student)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to create student: {str(e)}")


@router.put("/{student_id}", response_model=StudentOut)
def update_student(
    student_id: UUID,
    payload: StudentUpdate,
    ctx = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        student = StudentService(db).update_student(student_id, payload.model_dump(exclude_unset=True))
        db.commit()
        return StudentOut.from_student(student)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to update student: {str(e)}")


@router.post("/{student_id}/archive", response_model=StudentOut)
def archive_student(student_id: UUID, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        student = StudentService(db).archive_student(student_id)
        db.commit()
        return StudentOut.from_student(student)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to archive student: {str(e)}")


@router.post("/promote", response_model=MoveGradeOut)
def move_grade(payload: MoveGradeRequest, ctx = Depends(require_admin), db: Session = Depends(get_db)):
    """Move a whole grade to another grade by hand, outside the promotion rules."""
    try:
        moved = StudentService(db).move_grade(payload.from_grade_id, payload.to_grade_id)
        db.commit()
        return MoveGradeOut(message="Students promoted successfully", students_moved=moved)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Failed to move students: {str(e)}")
