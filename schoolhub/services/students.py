# schoolhub/services/students.py
import logging
from datetime import date
from typing import List, Optional, Dict, Any
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from schoolhub.models.grade import Grade
from schoolhub.models.student import Student
from schoolhub.services.errors import NotFoundError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "first_name", "middle_name", "last_name", "date_of_birth", "gender",
    "address", "phone_number", "guardian_name", "guardian_phone", "is_active",
)


class StudentService:
    def __init__(self, db: Session):
        self.db = db

    def list_students(self, include_archived: bool = False) -> List[Student]:
        query = select(Student).options(joinedload(Student.grade)).order_by(Student.last_name, Student.first_name)
        if not include_archived:
            query = query.where(Student.is_archived == False)  # noqa: E712
        return list(self.db.execute(query).scalars().all())

    def list_by_grade(self, grade_id: uuid.UUID) -> List[Student]:
        return list(self.db.execute(
            select(Student)
            .options(joinedload(Student.grade))
            .where(Student.grade_id == grade_id, Student.is_archived == False)  # noqa: E712
            .order_by(Student.last_name, Student.first_name)
        ).scalars().all())

    def get_student(self, student_id: uuid.UUID) -> Student:
        student = self.db.execute(
            select(Student).options(joinedload(Student.grade)).where(Student.id == student_id)
        ).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    def create_student(self, data: Dict[str, Any]) -> Student:
        student_number = data["student_number"]
        existing = self.db.execute(
            select(Student.id).where(Student.student_number == student_number)
        ).scalar_one_or_none()
        if existing:
            raise ValueError(f"Student number {student_number} already exists")

        grade = self._require_grade(data["grade_id"])

        student = Student(
            student_number=student_number,
            grade_id=grade.id,
            enrollment_date=data.get("enrollment_date") or date.today(),
            **{k: data.get(k) for k in UPDATABLE_FIELDS if k != "is_active"},
        )
        self.db.add(student)
        self.db.flush()
        logger.info(f"Enrolled student {student.student_number} into {grade.full_name}")
        return student

    def update_student(self, student_id: uuid.UUID, data: Dict[str, Any]) -> Student:
        """Update profile fields; a grade_id here is a manual grade reassignment."""
        student = self.get_student(student_id)
        if student.is_archived:
            raise ValueError("Archived students cannot be modified")

        for field in UPDATABLE_FIELDS:
            if field in data and data[field] is not None:
                setattr(student, field, data[field])

        new_grade_id = data.get("grade_id")
        if new_grade_id and new_grade_id != student.grade_id:
            grade = self._require_grade(new_grade_id)
            logger.info(f"Reassigning student {student.student_number} to {grade.full_name}")
            student.grade_id = grade.id
            student.grade = grade

        self.db.flush()
        return student

    def archive_student(self, student_id: uuid.UUID) -> Student:
        student = self.get_student(student_id)
        if student.is_archived:
            raise ValueError("Student is already archived")
        student.is_archived = True
        student.is_active = False
        student.archive_date = date.today()
        self.db.flush()
        return student

    def move_grade(self, from_grade_id: uuid.UUID, to_grade_id: uuid.UUID) -> int:
        """
        Manually move every enrolled student of one grade into another.

        No successor rules or validity windows are applied and students are not
        stamped as promoted, so a later bulk promotion still picks them up.
        """
        if from_grade_id == to_grade_id:
            raise ValueError("Source and target grade must differ")
        source = self.db.get(Grade, from_grade_id)
        if not source:
            raise NotFoundError("Grade", from_grade_id)
        target = self._require_grade(to_grade_id)

        students = self.list_by_grade(source.id)
        for student in students:
            student.grade_id = target.id
            student.grade = target
        self.db.flush()
        logger.info(f"Moved {len(students)} students from {source.full_name} to {target.full_name}")
        return len(students)

    def _require_grade(self, grade_id: uuid.UUID) -> Grade:
        grade = self.db.get(Grade, grade_id)
        if not grade or not grade.is_active:
            raise NotFoundError("Grade", grade_id)
        return grade
