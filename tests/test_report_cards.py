"""Report card rendering, class ranking, batched class generation and zip export."""

import io
import uuid
import zipfile

import pytest

from schoolhub.services import report_cards as report_card_module
from schoolhub.services.errors import NotFoundError
from schoolhub.services.report_cards import ClassRanking, ReportCardService
from schoolhub.services.report_pdf import ReportCardContext, SubjectLine, render_report_card

from conftest import find_grade, make_student, record_scores


@pytest.fixture
def grade(db):
    return find_grade(db, "Grade 4", "Purple")


@pytest.fixture
def pupils(db, grade):
    amara = make_student(db, grade, "R001", first_name="Amara", last_name="Banda")
    chipo = make_student(db, grade, "R002", first_name="Chipo", last_name="Mwale")
    david = make_student(db, grade, "R003", first_name="David", last_name="Phiri")
    esther = make_student(db, grade, "R004", first_name="Esther", last_name="Zulu")
    record_scores(db, amara, {"MATH": 90, "ENG": 90})
    record_scores(db, chipo, {"MATH": 70, "ENG": 90})
    record_scores(db, david, {"MATH": 95, "ENG": 85})
    # Esther has no scores for the term
    db.commit()
    return amara, chipo, david, esther


class TestRenderer:
    def test_pdf_bytes(self):
        ctx = ReportCardContext(
            school_name="Hill & Vale <School>",
            student_name="Amara Banda",
            student_number="R001",
            grade_name="Grade 4 Purple",
            section="Primary",
            curriculum="Legacy",
            academic_year=2025,
            term=1,
            exam_types=["Test-One", "Mid-Term", "End-of-Term"],
            lines=[SubjectLine(subject="Mathematics", scores={"Test-One": 80.0, "End-of-Term": 90.0},
                               comment="Good & steady")],
            overall_average=85.0,
            class_size=30,
            position=4,
        )
        pdf = render_report_card(ctx)
        assert pdf.startswith(b"%PDF")

    def test_subject_average(self):
        assert SubjectLine(subject="ICT", scores={"a": 70.0, "b": 75.0}).average == 72.5
        assert SubjectLine(subject="ICT", scores={}).average is None

    def test_empty_card_still_renders(self):
        ctx = ReportCardContext(
            school_name="School", student_name="A B", student_number="1", grade_name="Form 1 Grey",
            section="Secondary", curriculum="CompetencyBased", academic_year=2025, term=2,
            exam_types=[],
        )
        assert render_report_card(ctx).startswith(b"%PDF")


class TestClassRanking:
    def test_competition_ranking(self, db, grade, pupils):
        amara, chipo, david, esther = pupils
        ranking = ReportCardService(db).class_ranking(grade.id, 2025, 1)

        assert ranking.class_size == 4
        assert ranking.averages[amara.id] == 90.0
        assert ranking.averages[david.id] == 90.0
        assert ranking.averages[chipo.id] == 80.0
        assert ranking.position_of(amara.id) == 1
        assert ranking.position_of(david.id) == 1
        assert ranking.position_of(chipo.id) == 3
        assert ranking.position_of(esther.id) is None

    def test_other_term_is_empty(self, db, grade, pupils):
        ranking = ReportCardService(db).class_ranking(grade.id, 2025, 2)
        assert ranking.class_size == 4
        assert ranking.averages == {}

    def test_position_of_unknown(self):
        assert ClassRanking(class_size=0).position_of("nobody") is None


class TestGenerate:
    def test_single_student(self, db, grade, pupils, admin):
        amara = pupils[0]
        service = ReportCardService(db)

        card = service.generate_report_card(amara.id, 2025, 1, generated_by=admin.id)
        db.commit()

        assert card.grade_id == grade.id
        assert card.pdf_content.startswith(b"%PDF")
        stored, pdf = service.get_pdf(card.id)
        assert stored.id == card.id
        assert pdf == card.pdf_content
        assert [c.id for c in service.student_report_cards(amara.id)] == [card.id]

    def test_bad_term(self, db, pupils):
        with pytest.raises(ValueError):
            ReportCardService(db).generate_report_card(pupils[0].id, 2025, 4)

    def test_missing_student(self, db):
        with pytest.raises(NotFoundError):
            ReportCardService(db).generate_report_card(uuid.uuid4(), 2025, 1)

    def test_class_in_batches(self, db, session_factory, grade, pupils):
        service = ReportCardService(db, session_factory)

        result = service.generate_class_report_cards(grade.id, 2025, 1, batch_size=2, max_workers=2)

        assert result.errors == []
        assert len(result.report_cards) == 4
        # Ordered by last name, first name
        by_student = {s.id: s.last_name for s in pupils}
        assert [by_student[c.student_id] for c in result.report_cards] == ["Banda", "Mwale", "Phiri", "Zulu"]
        assert all(c.pdf_content.startswith(b"%PDF") for c in result.report_cards)

    def test_render_failure_is_reported_per_student(self, db, session_factory, grade, pupils, monkeypatch):
        amara, chipo, david, esther = pupils

        def render_or_fail(ctx):
            if ctx.student_number == esther.student_number:
                raise OSError("disk full")
            return render_report_card(ctx)

        monkeypatch.setattr(report_card_module, "render_report_card", render_or_fail)
        service = ReportCardService(db, session_factory)

        result = service.generate_class_report_cards(grade.id, 2025, 1, batch_size=2, max_workers=1)

        assert [c.student_id for c in result.report_cards] == [amara.id, chipo.id, david.id]
        assert result.errors == [f"{esther.id}: disk full"]
        # David shares a batch with Esther and keeps his card
        assert len(service.student_report_cards(david.id)) == 1
        assert service.student_report_cards(esther.id) == []

    def test_class_without_students(self, db, session_factory):
        empty = find_grade(db, "Grade 2", "Orange")
        result = ReportCardService(db, session_factory).generate_class_report_cards(empty.id, 2025, 1)
        assert result.report_cards == []

    def test_class_needs_session_factory(self, db, grade, pupils):
        with pytest.raises(RuntimeError):
            ReportCardService(db).generate_class_report_cards(grade.id, 2025, 1)


class TestExport:
    def test_zip_has_latest_card_per_student(self, db, session_factory, grade, pupils):
        service = ReportCardService(db, session_factory)
        service.generate_class_report_cards(grade.id, 2025, 1, batch_size=3)
        service.generate_report_card(pupils[0].id, 2025, 1)
        db.commit()

        data = service.export_class_zip(grade.id, 2025, 1)

        names = zipfile.ZipFile(io.BytesIO(data)).namelist()
        assert sorted(names) == [
            "R001_Amara_Banda_T1.pdf",
            "R002_Chipo_Mwale_T1.pdf",
            "R003_David_Phiri_T1.pdf",
            "R004_Esther_Zulu_T1.pdf",
        ]

    def test_nothing_to_export(self, db, grade):
        with pytest.raises(NotFoundError):
            ReportCardService(db).export_class_zip(grade.id, 2025, 3)

    def test_delete_all(self, db, pupils):
        service = ReportCardService(db)
        service.generate_report_card(pupils[1].id, 2025, 1)
        service.generate_report_card(pupils[2].id, 2025, 1)
        db.commit()

        assert service.delete_all() == 2
        db.commit()
        assert service.student_report_cards(pupils[1].id) == []
