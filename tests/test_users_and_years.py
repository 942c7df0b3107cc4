"""User accounts, the bearer-user cache, academic years and graduate archiving."""

import uuid
from datetime import date

import pytest
from sqlalchemy import select

from schoolhub.models.student import Student
from schoolhub.models.user import UserRole
from schoolhub.services.academics import AcademicYearService
from schoolhub.services.errors import NotFoundError
from schoolhub.services.promotion import PromotionFailure
from schoolhub.services.users import UserCache, UserService

from conftest import auth_headers, find_grade, make_student, make_user


class TestUserService:
    def test_create_validates(self, db):
        service = UserService(db, cache=UserCache(60))
        with pytest.raises(ValueError):
            service.create_user(username="x1", full_name="X", password="123", roles=["TEACHER"])
        with pytest.raises(ValueError):
            service.create_user(username="x1", full_name="X", password="secret1", roles=["PRINCIPAL"])
        with pytest.raises(ValueError):
            service.create_user(username="admin", full_name="X", password="secret1", roles=["STAFF"])

    def test_roles_round_trip(self, db):
        user = make_user(db, "both", [UserRole.TEACHER.value, UserRole.ADMIN.value])
        assert user.roles == ["ADMIN", "TEACHER"]
        assert user.has_role("TEACHER")
        assert not user.has_role("STAFF")

    def test_missing_user(self, db):
        with pytest.raises(NotFoundError):
            UserService(db).get_user(uuid.uuid4())


class TestUserCache:
    def test_serves_snapshot_until_invalidated(self, db):
        cache = UserCache(ttl_seconds=600)
        service = UserService(db, cache=cache)
        user = make_user(db, "cached", [UserRole.STAFF.value])

        first = cache.get(db, user.id)
        assert first.full_name == "Cached"

        user.full_name = "Renamed Directly"
        db.commit()
        assert cache.get(db, user.id) is first

        service.update_user(user.id, full_name="Renamed")
        db.commit()
        assert cache.get(db, user.id).full_name == "Renamed"

    def test_deactivated_user_is_rejected(self, client, db, admin_headers):
        user = make_user(db, "leaving", [UserRole.STAFF.value])
        headers = auth_headers(user)
        assert client.get("/api/grades", headers=headers).status_code == 200

        resp = client.post(f"/api/users/{user.id}/deactivate", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get("/api/grades", headers=headers).status_code == 401


class TestUserEndpoints:
    def test_admin_manages_users(self, client, admin_headers):
        resp = client.post("/api/users", headers=admin_headers, json={
            "username": "newteacher",
            "full_name": "New Teacher",
            "password": "secret123",
            "roles": ["TEACHER"],
        })
        assert resp.status_code == 201
        user_id = resp.json()["id"]

        updated = client.put(f"/api/users/{user_id}", headers=admin_headers, json={"roles": ["TEACHER", "STAFF"]})
        assert updated.json()["roles"] == ["STAFF", "TEACHER"]

        reset = client.post(f"/api/users/{user_id}/reset-password", headers=admin_headers,
                            json={"new_password": "another1"})
        assert reset.status_code == 200
        login = client.post("/api/auth/login", json={"username": "newteacher", "password": "another1"})
        assert login.status_code == 200

        assert client.delete(f"/api/users/{user_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/users/{user_id}", headers=admin_headers).status_code == 404

    def test_admin_cannot_delete_self(self, client, admin, admin_headers):
        assert client.delete(f"/api/users/{admin.id}", headers=admin_headers).status_code == 400


class TestAcademicYears:
    def test_single_active_year(self, db):
        service = AcademicYearService(db)
        old = service.create_year("2024", date(2024, 1, 8), date(2024, 12, 6))
        new = service.create_year("2025", date(2025, 1, 13), date(2025, 12, 5))
        db.commit()

        assert not old.is_active
        assert service.get_active_year().id == new.id
        assert [y.name for y in service.list_years()] == ["2025", "2024"]

    def test_rejects_bad_input(self, db):
        service = AcademicYearService(db)
        with pytest.raises(ValueError):
            service.create_year("2026", date(2026, 12, 1), date(2026, 1, 1))
        service.create_year("2026", date(2026, 1, 12), date(2026, 12, 4))
        with pytest.raises(ValueError):
            service.create_year("2026", date(2026, 1, 12), date(2026, 12, 4))

    def test_close_twice(self, db):
        service = AcademicYearService(db)
        year = service.create_year("2025", date(2025, 1, 13), date(2025, 12, 5))
        service.close_year(year.id)
        assert year.is_closed and not year.is_active
        with pytest.raises(ValueError):
            service.close_year(year.id)

    def test_promote_all_uses_start_year(self, db):
        service = AcademicYearService(db)
        year = service.create_year("2025-2026", date(2025, 9, 1), date(2026, 7, 15))
        student = make_student(db, find_grade(db, "Grade 6", "Purple"), "Y001")
        db.commit()

        summary = service.promote_all(year.id)
        assert summary.success
        db.expire_all()
        assert db.get(Student, student.id).last_promoted_year == 2025
        assert db.get(Student, student.id).grade.full_name == "Form 1 Grey"

        again = service.promote_all(year.id)
        assert again.failure == PromotionFailure.ALREADY_PROMOTED

    def test_archive_graduates(self, db):
        service = AcademicYearService(db)
        year = service.create_year("2025", date(2025, 1, 13), date(2025, 12, 5))
        make_student(db, find_grade(db, "Grade 12", "Grey"), "Z001")
        make_student(db, find_grade(db, "Form 6", "Blue"), "Z002")
        stayer = make_student(db, find_grade(db, "Grade 11", "Grey"), "Z003")
        db.commit()

        result = service.archive_graduates(year.id)
        db.commit()

        assert result["archived"] == 2
        archived = db.execute(select(Student).where(Student.is_archived == True)).scalars().all()  # noqa: E712
        assert sorted(s.student_number for s in archived) == ["Z001", "Z002"]
        assert all(s.archive_date is not None for s in archived)
        assert not db.get(Student, stayer.id).is_archived

    def test_endpoints(self, client, admin_headers, staff_headers):
        created = client.post("/api/academic-years", headers=admin_headers, json={
            "name": "2025", "start_date": "2025-01-13", "end_date": "2025-12-05",
        })
        assert created.status_code == 201
        year_id = created.json()["id"]

        assert client.get("/api/academic-years/active", headers=staff_headers).json()["id"] == year_id
        assert client.post(f"/api/academic-years/{year_id}/promote-all", headers=admin_headers).status_code == 200
        assert client.post(f"/api/academic-years/{year_id}/promote-all", headers=admin_headers).status_code == 409
        assert client.post(f"/api/academic-years/{year_id}/close", headers=admin_headers).status_code == 200
        assert client.post(f"/api/academic-years/{year_id}/close", headers=admin_headers).status_code == 400
