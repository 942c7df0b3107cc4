# schoolhub/services/helpers/bootstrap_school.py - Seed the grade catalog and reference data
import logging
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from schoolhub.core.config import settings
from schoolhub.core.security import hash_password
from schoolhub.models.grade import Grade, GradePromotionRule, SchoolSection, CurriculumType
from schoolhub.models.exam import ExamType
from schoolhub.models.subject import Subject
from schoolhub.models.user import User, UserRole

logger = logging.getLogger(__name__)

PRIMARY_STREAMS = ["Purple", "Green", "Orange"]
SECONDARY_STREAMS = ["Grey", "Blue"]

# (name, level, section) for the Legacy curriculum
LEGACY_STAGES = (
    [("Baby-Class", 1, SchoolSection.PRESCHOOL),
     ("Middle-Class", 2, SchoolSection.PRESCHOOL),
     ("Reception-Class", 3, SchoolSection.PRESCHOOL)]
    + [(f"Grade {n}", n + 3, SchoolSection.PRIMARY) for n in range(1, 8)]
    + [(f"Grade {n}", n + 3, SchoolSection.SECONDARY) for n in range(8, 13)]
)

# Legacy grades that only keep running for cohorts already inside them
LEGACY_PHASE_OUT = {
    "Grade 7": 2025,
    "Grade 8": 2026,
    "Grade 9": 2027,
    "Grade 10": 2028,
    "Grade 11": 2029,
    "Grade 12": 2030,
}

# Form n opens in 2024 + n
COMPETENCY_STAGES = [(f"Form {n}", n, 2024 + n) for n in range(1, 7)]

EXAM_TYPES = [
    ("Test-One", "First test of the term", 1),
    ("Mid-Term", "Mid-term examination", 2),
    ("End-of-Term", "End of term examination", 3),
]

SUBJECTS = [
    ("Mathematics", "MATH"),
    ("English", "ENG"),
    ("Science", "SCI"),
    ("Social Studies", "SS"),
    ("French", "FR"),
    ("ICT", "ICT"),
    ("Physical Education", "PE"),
    ("Art", "ART"),
]


def seed_school(db: Session) -> None:
    """
    Idempotently seed grades, promotion rules, exam types, subjects and the
    administrator account. Each block is skipped when its table has rows.
    """
    if not _has_rows(db, Grade):
        _create_grades(db)
    if not _has_rows(db, GradePromotionRule):
        _create_promotion_rules(db)
    if not _has_rows(db, ExamType):
        for name, description, order in EXAM_TYPES:
            db.add(ExamType(name=name, description=description, order=order))
    if not _has_rows(db, Subject):
        for name, code in SUBJECTS:
            db.add(Subject(name=name, code=code))
    _ensure_admin(db)
    db.commit()


def _has_rows(db: Session, model) -> bool:
    return (db.execute(select(func.count()).select_from(model)).scalar_one() or 0) > 0


def _create_grades(db: Session) -> None:
    created = 0
    for name, level, section in LEGACY_STAGES:
        streams = SECONDARY_STREAMS if section == SchoolSection.SECONDARY else PRIMARY_STREAMS
        phase_out = LEGACY_PHASE_OUT.get(name)
        for stream in streams:
            db.add(Grade(
                name=name,
                stream=stream,
                level=level,
                section=section,
                curriculum_type=CurriculumType.LEGACY,
                is_transitional=phase_out is not None,
                phase_out_year=phase_out,
            ))
            created += 1

    for name, level, introduced in COMPETENCY_STAGES:
        for stream in SECONDARY_STREAMS:
            db.add(Grade(
                name=name,
                stream=stream,
                level=level,
                section=SchoolSection.SECONDARY,
                curriculum_type=CurriculumType.COMPETENCY_BASED,
                introduced_year=introduced,
            ))
            created += 1

    db.flush()
    logger.info(f"Seeded {created} grades")


def _create_promotion_rules(db: Session) -> None:
    levels = {name: level for name, level, _ in LEGACY_STAGES}
    db.add(GradePromotionRule(
        from_curriculum=CurriculumType.LEGACY,
        from_level=levels["Grade 6"],
        from_section=SchoolSection.PRIMARY,
        to_curriculum=CurriculumType.COMPETENCY_BASED,
        to_level=1,
        to_section=SchoolSection.SECONDARY,
        description="Grade 6 moves into Form 1 of the competency-based curriculum",
    ))
    db.add(GradePromotionRule(
        from_curriculum=CurriculumType.LEGACY,
        from_level=levels["Grade 7"],
        from_section=SchoolSection.PRIMARY,
        to_curriculum=CurriculumType.LEGACY,
        to_level=levels["Grade 8"],
        to_section=SchoolSection.SECONDARY,
        description="Grade 7 cohorts finish secondary on the legacy curriculum",
    ))
    db.flush()


def _ensure_admin(db: Session) -> None:
    existing = db.execute(
        select(User).where(User.username == settings.SEED_ADMIN_USERNAME)
    ).scalar_one_or_none()
    if existing:
        return
    admin = User(
        username=settings.SEED_ADMIN_USERNAME,
        full_name="System Administrator",
        password_hash=hash_password(settings.SEED_ADMIN_PASSWORD),
        is_active=True,
    )
    admin.set_roles([UserRole.ADMIN.value])
    db.add(admin)
    db.flush()
    logger.info(f"Created administrator account '{admin.username}'")
