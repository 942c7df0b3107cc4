# schoolhub/services/report_cards.py
"""
Report card generation.

A card is always rendered against the student's current grade. Class-wide
generation splits the grade's students into fixed-size batches; each batch
runs on its own worker thread with its own database session, and results
are merged back in student order once every batch has finished. Each card is
committed as soon as it is rendered; a student whose card fails is reported
in the result's errors and does not stop the rest of the class.
"""
import logging
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, List, Optional, Tuple
import uuid

from sqlalchemy import select, func, delete
from sqlalchemy.orm import Session, sessionmaker, joinedload

from schoolhub.core.config import settings
from schoolhub.core.db import db_session
from schoolhub.models.exam import ExamScore, ExamType, ReportCard
from schoolhub.models.grade import Grade
from schoolhub.models.student import Student
from schoolhub.services.errors import NotFoundError
from schoolhub.services.report_pdf import ReportCardContext, SubjectLine, render_report_card

logger = logging.getLogger(__name__)


@dataclass
class ClassRanking:
    """Average score per student and the competition rank derived from it."""
    class_size: int
    averages: Dict[uuid.UUID, float] = field(default_factory=dict)

    def position_of(self, student_id: uuid.UUID) -> Optional[int]:
        mine = self.averages.get(student_id)
        if mine is None:
            return None
        return 1 + sum(1 for avg in self.averages.values() if avg > mine)


@dataclass
class ClassReportResult:
    report_cards: List[ReportCard]
    errors: List[str]


class ReportCardService:
    def __init__(self, db: Session, session_factory: Optional[sessionmaker] = None):
        self.db = db
        self.session_factory = session_factory

    def class_ranking(self, grade_id: uuid.UUID, academic_year: int, term: int) -> ClassRanking:
        student_ids = self.db.execute(
            select(Student.id).where(Student.grade_id == grade_id, Student.is_archived == False)  # noqa: E712
        ).scalars().all()
        ranking = ClassRanking(class_size=len(student_ids))
        if not student_ids:
            return ranking

        rows = self.db.execute(
            select(ExamScore.student_id, func.avg(ExamScore.score))
            .where(
                ExamScore.student_id.in_(student_ids),
                ExamScore.academic_year == academic_year,
                ExamScore.term == term,
            )
            .group_by(ExamScore.student_id)
        ).all()
        ranking.averages = {sid: round(float(avg), 2) for sid, avg in rows}
        return ranking

    def build_context(self, student: Student, academic_year: int, term: int,
                      ranking: Optional[ClassRanking] = None) -> ReportCardContext:
        grade = student.grade
        if ranking is None:
            ranking = self.class_ranking(grade.id, academic_year, term)

        exam_types = [et.name for et in self.db.execute(select(ExamType).order_by(ExamType.order)).scalars()]
        scores = self.db.execute(
            select(ExamScore)
            .options(joinedload(ExamScore.subject), joinedload(ExamScore.exam_type))
            .where(
                ExamScore.student_id == student.id,
                ExamScore.academic_year == academic_year,
                ExamScore.term == term,
            )
        ).scalars().all()

        by_subject: Dict[str, SubjectLine] = {}
        for score in scores:
            line = by_subject.setdefault(score.subject.name, SubjectLine(subject=score.subject.name, scores={}))
            line.scores[score.exam_type.name] = float(score.score)
            if score.comments:
                line.comment = score.comments

        return ReportCardContext(
            school_name=settings.SCHOOL_NAME,
            student_name=student.full_name,
            student_number=student.student_number,
            grade_name=grade.full_name,
            section=grade.section.value,
            curriculum=grade.curriculum_type.value,
            academic_year=academic_year,
            term=term,
            exam_types=exam_types,
            lines=sorted(by_subject.values(), key=lambda l: l.subject),
            overall_average=ranking.averages.get(student.id),
            class_size=ranking.class_size,
            position=ranking.position_of(student.id),
        )

    def generate_report_card(self, student_id: uuid.UUID, academic_year: int, term: int,
                             generated_by: Optional[uuid.UUID] = None,
                             ranking: Optional[ClassRanking] = None) -> ReportCard:
        if term not in (1, 2, 3):
            raise ValueError("Term must be 1, 2 or 3")
        student = self.db.execute(
            select(Student).options(joinedload(Student.grade)).where(Student.id == student_id)
        ).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", student_id)

        ctx = self.build_context(student, academic_year, term, ranking)
        report_card = ReportCard(
            student_id=student.id,
            grade_id=student.grade_id,
            academic_year=academic_year,
            term=term,
            pdf_content=render_report_card(ctx),
            generated_by=generated_by,
        )
        self.db.add(report_card)
        self.db.flush()
        return report_card

    def generate_class_report_cards(self, grade_id: uuid.UUID, academic_year: int, term: int,
                                    generated_by: Optional[uuid.UUID] = None,
                                    batch_size: Optional[int] = None,
                                    max_workers: Optional[int] = None) -> ClassReportResult:
        if term not in (1, 2, 3):
            raise ValueError("Term must be 1, 2 or 3")
        if not self.db.get(Grade, grade_id):
            raise NotFoundError("Grade", grade_id)
        if self.session_factory is None:
            raise RuntimeError("Class generation requires a session factory")

        student_ids = list(self.db.execute(
            select(Student.id)
            .where(Student.grade_id == grade_id, Student.is_archived == False)  # noqa: E712
            .order_by(Student.last_name, Student.first_name)
        ).scalars().all())
        if not student_ids:
            return ClassReportResult(report_cards=[], errors=[])

        ranking = self.class_ranking(grade_id, academic_year, term)
        size = batch_size or settings.REPORT_BATCH_SIZE
        batches = [list(enumerate(student_ids))[i:i + size] for i in range(0, len(student_ids), size)]
        workers = min(max_workers or settings.REPORT_MAX_WORKERS, len(batches))

        logger.info(f"Generating {len(student_ids)} report cards in {len(batches)} batches")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._run_batch, batch, academic_year, term, generated_by, ranking)
                for batch in batches
            ]
            outcomes: List[Tuple[int, Optional[uuid.UUID], Optional[str]]] = []
            for future in futures:
                outcomes.extend(future.result())

        outcomes.sort(key=lambda item: item[0])
        card_ids = [card_id for _, card_id, _ in outcomes if card_id is not None]
        errors = [error for _, _, error in outcomes if error]

        cards = {c.id: c for c in self.db.execute(
            select(ReportCard).where(ReportCard.id.in_(card_ids))
        ).scalars()} if card_ids else {}
        return ClassReportResult(report_cards=[cards[cid] for cid in card_ids if cid in cards], errors=errors)

    def _run_batch(self, batch, academic_year, term, generated_by, ranking):
        results = []
        with db_session(self.session_factory) as session:
            worker = ReportCardService(session)
            for index, student_id in batch:
                try:
                    card = worker.generate_report_card(student_id, academic_year, term, generated_by, ranking)
                    card_id = card.id
                    session.commit()
                    results.append((index, card_id, None))
                except (NotFoundError, ValueError) as e:
                    session.rollback()
                    results.append((index, None, f"{student_id}: {e}"))
                except Exception as e:
                    # Only this student's card is lost; earlier cards are already committed
                    session.rollback()
                    logger.exception(f"Report card generation failed for student {student_id}")
                    results.append((index, None, f"{student_id}: {e}"))
        return results

    def get_pdf(self, report_card_id: uuid.UUID) -> Tuple[ReportCard, bytes]:
        card = self.db.get(ReportCard, report_card_id)
        if not card:
            raise NotFoundError("Report card", report_card_id)
        return card, card.pdf_content

    def student_report_cards(self, student_id: uuid.UUID) -> List[ReportCard]:
        return list(self.db.execute(
            select(ReportCard)
            .where(ReportCard.student_id == student_id)
            .order_by(ReportCard.academic_year.desc(), ReportCard.term.desc(), ReportCard.generated_at.desc())
        ).scalars().all())

    def export_class_zip(self, grade_id: uuid.UUID, academic_year: int, term: int) -> bytes:
        """Zip of the latest card per student for the grade/year/term."""
        cards = self.db.execute(
            select(ReportCard, Student)
            .join(Student, Student.id == ReportCard.student_id)
            .where(
                ReportCard.grade_id == grade_id,
                ReportCard.academic_year == academic_year,
                ReportCard.term == term,
            )
            .order_by(ReportCard.generated_at.desc())
        ).all()
        if not cards:
            raise NotFoundError("Report cards for grade", grade_id)

        latest: Dict[uuid.UUID, Tuple[ReportCard, Student]] = {}
        for card, student in cards:
            latest.setdefault(student.id, (card, student))

        buffer = BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zipf:
            for card, student in sorted(latest.values(), key=lambda pair: pair[1].student_number):
                name = student.full_name.replace(" ", "_")
                zipf.writestr(f"{student.student_number}_{name}_T{term}.pdf", card.pdf_content)
        return buffer.getvalue()

    def delete_all(self) -> int:
        result = self.db.execute(delete(ReportCard))
        self.db.flush()
        return result.rowcount or 0
