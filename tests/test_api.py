"""HTTP surface: authentication, role gating and status-code mapping."""

import io
import uuid
import zipfile

from sqlalchemy.exc import SQLAlchemyError

from schoolhub.core.security import create_token, decode_token
from schoolhub.models.grade import CurriculumType
from schoolhub.services.promotion.repo import PromotionRepo

from conftest import find_grade, make_student, record_scores


class TestHealthAndAuth:
    def test_healthz(self, client):
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json()["ok"] is True

    def test_login_and_me(self, client):
        resp = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["token_type"] == "bearer"
        assert body["roles"] == ["ADMIN"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["username"] == "admin"

    def test_bad_password(self, client):
        resp = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
        assert resp.status_code == 401

    def test_missing_token(self, client):
        assert client.get("/api/grades").status_code in (401, 403)

    def test_garbage_token(self, client):
        resp = client.get("/api/grades", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_token_claims(self, client):
        body = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"}).json()
        claims = decode_token(body["access_token"])
        assert claims["sub"] == body["user_id"]
        assert claims["roles"] == ["ADMIN"]
        assert claims["full_name"] == body["full_name"]
        assert "username" not in claims

    def test_expired_token(self, client, admin):
        token = create_token(sub=str(admin.id), roles=admin.roles, minutes=-1)
        resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401


class TestRoleGating:
    def test_staff_can_read_grades(self, client, staff_headers):
        resp = client.get("/api/grades", headers=staff_headers)
        assert resp.status_code == 200
        assert len(resp.json()) == 52  # 40 legacy + 12 competency-based

    def test_staff_cannot_promote(self, client, staff_headers):
        resp = client.get("/api/promotions/transition-status?academic_year=2025", headers=staff_headers)
        assert resp.status_code == 403

    def test_teacher_cannot_manage_users(self, client, teacher_headers):
        assert client.get("/api/users", headers=teacher_headers).status_code == 403

    def test_teacher_records_scores(self, client, db, teacher_headers):
        student = make_student(db, find_grade(db, "Grade 3", "Purple"), "T100")
        db.commit()
        types = client.get("/api/exams/types", headers=teacher_headers).json()
        subjects = client.get("/api/subjects", headers=teacher_headers).json()

        resp = client.post("/api/exams/scores", headers=teacher_headers, json={
            "student_id": str(student.id),
            "subject_id": subjects[0]["id"],
            "exam_type_id": types[0]["id"],
            "score": 77.5,
            "academic_year": 2025,
            "term": 1,
        })
        assert resp.status_code == 200
        assert resp.json()["score"] == 77.5

        bad = client.post("/api/exams/scores", headers=teacher_headers, json={
            "student_id": str(student.id),
            "subject_id": subjects[0]["id"],
            "exam_type_id": types[0]["id"],
            "score": 120,
            "academic_year": 2025,
            "term": 1,
        })
        assert bad.status_code == 422


class TestPromotionEndpoints:
    def test_promote_student(self, client, db, admin_headers):
        student = make_student(db, find_grade(db, "Grade 6", "Purple"), "P100")
        db.commit()

        resp = client.post(f"/api/promotions/students/{student.id}?academic_year=2025", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["to_grade"] == "Form 1 Grey"

    def test_terminal_is_bad_request(self, client, db, admin_headers):
        student = make_student(db, find_grade(db, "Form 6", "Blue", CurriculumType.COMPETENCY_BASED), "P101")
        db.commit()

        resp = client.post(f"/api/promotions/students/{student.id}?academic_year=2031", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["failure"] == "TerminalGrade"

    def test_unknown_student(self, client, admin_headers):
        resp = client.post(f"/api/promotions/students/{uuid.uuid4()}?academic_year=2025", headers=admin_headers)
        assert resp.status_code == 404

    def test_promote_all_then_conflict(self, client, db, admin_headers):
        make_student(db, find_grade(db, "Grade 1", "Green"), "P102")
        db.commit()

        first = client.post("/api/promotions/all", headers=admin_headers, json={"academic_year": 2025})
        assert first.status_code == 200
        assert first.json()["total_students_promoted"] == 1

        again = client.post("/api/promotions/all", headers=admin_headers, json={"academic_year": 2025})
        assert again.status_code == 409
        assert again.json()["failure"] == "AlreadyPromoted"

        forced = client.post("/api/promotions/all", headers=admin_headers,
                             json={"academic_year": 2025, "force": True})
        assert forced.status_code == 200

    def test_targets_and_status(self, client, db, admin_headers):
        grade = find_grade(db, "Grade 6", "Green")
        resp = client.get(f"/api/promotions/targets/{grade.id}?academic_year=2025", headers=admin_headers)
        assert resp.status_code == 200
        assert [g["full_name"] for g in resp.json()] == ["Form 1 Blue"]

        status = client.get("/api/promotions/transition-status?academic_year=2026", headers=admin_headers)
        assert status.json()["transition_phase"] == "Transition Year 2 of 6"

    def test_database_error_is_server_error(self, client, db, admin_headers, monkeypatch):
        student = make_student(db, find_grade(db, "Grade 2", "Green"), "P103")
        db.commit()

        def database_locked(self, student_id):
            raise SQLAlchemyError("database is locked")

        monkeypatch.setattr(PromotionRepo, "get_enrolled_student", database_locked)
        resp = client.post(f"/api/promotions/students/{student.id}?academic_year=2025", headers=admin_headers)

        assert resp.status_code == 500
        assert resp.json()["failure"] == "Unexpected"
        assert resp.json()["error_message"] == "Error promoting student: database is locked"

    def test_runs_audit_trail(self, client, db, admin, admin_headers):
        make_student(db, find_grade(db, "Grade 4", "Orange"), "P104")
        db.commit()
        client.post("/api/promotions/all", headers=admin_headers, json={"academic_year": 2025})

        runs = client.get("/api/promotions/runs?academic_year=2025", headers=admin_headers).json()
        assert len(runs) == 1
        assert runs[0]["status"] == "COMPLETED"
        assert runs[0]["students_promoted"] == 1
        assert runs[0]["triggered_by"] == str(admin.id)
        assert client.get("/api/promotions/runs?academic_year=2026", headers=admin_headers).json() == []


class TestStudentsAndGrades:
    def test_enroll_update_archive(self, client, db, admin_headers, staff_headers):
        grade = find_grade(db, "Grade 2", "Orange")
        resp = client.post("/api/students", headers=admin_headers, json={
            "student_number": "N001",
            "first_name": "Kondwani",
            "last_name": "Tembo",
            "grade_id": str(grade.id),
        })
        assert resp.status_code == 201
        student_id = resp.json()["id"]
        assert resp.json()["grade_name"] == "Grade 2 Orange"

        dup = client.post("/api/students", headers=admin_headers, json={
            "student_number": "N001", "first_name": "X", "last_name": "Y", "grade_id": str(grade.id),
        })
        assert dup.status_code == 400

        moved = client.put(f"/api/students/{student_id}", headers=admin_headers, json={
            "grade_id": str(find_grade(db, "Grade 3", "Orange").id),
        })
        assert moved.json()["grade_name"] == "Grade 3 Orange"

        assert client.post(f"/api/students/{student_id}/archive", headers=admin_headers).status_code == 200
        listed = client.get("/api/students", headers=staff_headers).json()
        assert student_id not in [s["id"] for s in listed]
        listed = client.get("/api/students?include_archived=true", headers=staff_headers).json()
        assert student_id in [s["id"] for s in listed]

    def test_missing_student(self, client, staff_headers):
        assert client.get(f"/api/students/{uuid.uuid4()}", headers=staff_headers).status_code == 404

    def test_move_whole_grade(self, client, db, admin_headers, staff_headers):
        source = find_grade(db, "Grade 7", "Purple")
        target = find_grade(db, "Grade 7", "Green")
        moved = [make_student(db, source, f"M00{i}") for i in range(3)]
        make_student(db, source, "M009", is_archived=True)
        db.commit()

        resp = client.post("/api/students/promote", headers=admin_headers, json={
            "from_grade_id": str(source.id), "to_grade_id": str(target.id),
        })
        assert resp.status_code == 200
        assert resp.json()["students_moved"] == 3

        listed = client.get(f"/api/students/grade/{target.id}", headers=staff_headers).json()
        assert sorted(s["student_number"] for s in listed) == [s.student_number for s in moved]
        assert all(s["last_promoted_year"] is None for s in listed)
        assert client.get(f"/api/students/grade/{source.id}", headers=staff_headers).json() == []

    def test_move_grade_rejects_bad_targets(self, client, db, admin_headers, staff_headers):
        grade = find_grade(db, "Grade 1", "Green")
        same = client.post("/api/students/promote", headers=admin_headers, json={
            "from_grade_id": str(grade.id), "to_grade_id": str(grade.id),
        })
        assert same.status_code == 400
        missing = client.post("/api/students/promote", headers=admin_headers, json={
            "from_grade_id": str(grade.id), "to_grade_id": str(uuid.uuid4()),
        })
        assert missing.status_code == 404
        forbidden = client.post("/api/students/promote", headers=staff_headers, json={
            "from_grade_id": str(grade.id), "to_grade_id": str(grade.id),
        })
        assert forbidden.status_code == 403

    def test_create_grade_and_homeroom(self, client, admin_headers, teacher):
        resp = client.post("/api/grades", headers=admin_headers, json={
            "name": "Grade 4", "stream": "Red", "level": 7, "section": "Primary",
        })
        assert resp.status_code == 201
        grade_id = resp.json()["id"]

        assigned = client.post(f"/api/grades/{grade_id}/assign-homeroom-teacher",
                               headers=admin_headers, json={"teacher_id": str(teacher.id)})
        assert assigned.status_code == 200
        assert assigned.json()["homeroom_teacher_id"] == str(teacher.id)


class TestReportCardEndpoints:
    def test_generate_download_export(self, client, db, admin_headers, staff_headers):
        grade = find_grade(db, "Grade 5", "Green")
        first = make_student(db, grade, "Q001", first_name="Lina", last_name="Aku")
        second = make_student(db, grade, "Q002", first_name="Musa", last_name="Bwalya")
        record_scores(db, first, {"MATH": 60})
        record_scores(db, second, {"MATH": 75})
        db.commit()

        resp = client.post(f"/api/report-cards/generate/class/{grade.id}", headers=admin_headers,
                           json={"academic_year": 2025, "term": 1})
        assert resp.status_code == 200
        assert resp.json()["generated"] == 2

        card_id = resp.json()["report_cards"][0]["id"]
        pdf = client.get(f"/api/report-cards/{card_id}/download", headers=admin_headers)
        assert pdf.status_code == 200
        assert pdf.headers["content-type"] == "application/pdf"
        assert pdf.content.startswith(b"%PDF")

        listed = client.get(f"/api/report-cards/student/{first.id}", headers=staff_headers)
        assert len(listed.json()) == 1

        export = client.get(f"/api/report-cards/class/{grade.id}/export?academic_year=2025&term=1",
                            headers=admin_headers)
        assert export.status_code == 200
        assert len(zipfile.ZipFile(io.BytesIO(export.content)).namelist()) == 2

        deleted = client.delete("/api/report-cards/all", headers=admin_headers)
        assert deleted.json()["deleted"] == 2

    def test_download_missing(self, client, admin_headers):
        assert client.get(f"/api/report-cards/{uuid.uuid4()}/download", headers=admin_headers).status_code == 404
