# schoolhub/services/subjects.py
from typing import List, Optional
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolhub.models.grade import Grade
from schoolhub.models.subject import Subject, GradeSubject
from schoolhub.services.errors import NotFoundError


class SubjectService:
    def __init__(self, db: Session):
        self.db = db

    def list_subjects(self) -> List[Subject]:
        return list(self.db.execute(
            select(Subject).where(Subject.is_active == True).order_by(Subject.name)  # noqa: E712
        ).scalars().all())

    def get_subject(self, subject_id: uuid.UUID) -> Subject:
        subject = self.db.get(Subject, subject_id)
        if not subject:
            raise NotFoundError("Subject", subject_id)
        return subject

    def create_subject(self, name: str, code: str, description: Optional[str] = None) -> Subject:
        code = code.strip().upper()
        if self.db.execute(select(Subject.id).where(Subject.code == code)).scalar_one_or_none():
            raise ValueError(f"Subject code {code} already exists")
        subject = Subject(name=name.strip(), code=code, description=description)
        self.db.add(subject)
        self.db.flush()
        return subject

    def assign_to_grade(self, subject_id: uuid.UUID, grade_id: uuid.UUID, is_optional: bool = False) -> GradeSubject:
        subject = self.get_subject(subject_id)
        if not self.db.get(Grade, grade_id):
            raise NotFoundError("Grade", grade_id)

        link = self.db.execute(
            select(GradeSubject).where(
                GradeSubject.grade_id == grade_id,
                GradeSubject.subject_id == subject.id,
            )
        ).scalar_one_or_none()
        if link:
            link.is_optional = is_optional
            link.is_active = True
        else:
            link = GradeSubject(grade_id=grade_id, subject_id=subject.id, is_optional=is_optional)
            self.db.add(link)
        self.db.flush()
        return link
