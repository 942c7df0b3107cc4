"""initial schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2025-09-02 10:14:22.518330

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, grade catalog, students, academics and exam tables."""

    op.create_table('users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('roles_csv', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    op.create_table('grades',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('stream', sa.String(length=50), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('section', sa.String(length=16), nullable=False),
        sa.Column('curriculum_type', sa.String(length=16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_transitional', sa.Boolean(), nullable=False),
        sa.Column('phase_out_year', sa.Integer(), nullable=True),
        sa.Column('introduced_year', sa.Integer(), nullable=True),
        sa.Column('valid_for_cohorts', sa.String(length=100), nullable=True),
        sa.Column('homeroom_teacher_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['homeroom_teacher_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_grades_family_level', 'grades', ['curriculum_type', 'level', 'section', 'stream'], unique=False)

    op.create_table('grade_promotion_rules',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('from_curriculum', sa.String(length=16), nullable=False),
        sa.Column('from_level', sa.Integer(), nullable=False),
        sa.Column('from_section', sa.String(length=16), nullable=False),
        sa.Column('to_curriculum', sa.String(length=16), nullable=False),
        sa.Column('to_level', sa.Integer(), nullable=False),
        sa.Column('to_section', sa.String(length=16), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('uq_promotion_rule_source', 'grade_promotion_rules', ['from_curriculum', 'from_level', 'from_section'], unique=True)

    op.create_table('students',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_number', sa.String(length=20), nullable=False),
        sa.Column('first_name', sa.String(length=50), nullable=False),
        sa.Column('middle_name', sa.String(length=50), nullable=True),
        sa.Column('last_name', sa.String(length=50), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(length=10), nullable=True),
        sa.Column('address', sa.String(length=200), nullable=True),
        sa.Column('phone_number', sa.String(length=15), nullable=True),
        sa.Column('guardian_name', sa.String(length=100), nullable=True),
        sa.Column('guardian_phone', sa.String(length=15), nullable=True),
        sa.Column('grade_id', sa.Uuid(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_archived', sa.Boolean(), nullable=False),
        sa.Column('enrollment_date', sa.Date(), nullable=False),
        sa.Column('archive_date', sa.Date(), nullable=True),
        sa.Column('last_promoted_year', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['grade_id'], ['grades.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_students_student_number'), 'students', ['student_number'], unique=True)
    op.create_index(op.f('ix_students_grade_id'), 'students', ['grade_id'], unique=False)

    op.create_table('academic_years',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_closed', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('end_date >= start_date', name='ck_academic_year_dates'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('promotion_runs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('academic_year', sa.Integer(), nullable=False),
        sa.Column('academic_year_id', sa.Uuid(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('grades_processed', sa.Integer(), nullable=False),
        sa.Column('failed_grades', sa.Integer(), nullable=False),
        sa.Column('students_promoted', sa.Integer(), nullable=False),
        sa.Column('triggered_by', sa.Uuid(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('COMPLETED','PARTIAL','FAILED')", name='ck_promotion_run_status'),
        sa.ForeignKeyConstraint(['academic_year_id'], ['academic_years.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['triggered_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_promotion_runs_academic_year'), 'promotion_runs', ['academic_year'], unique=False)
    op.create_index('ix_promotion_runs_year_status', 'promotion_runs', ['academic_year', 'status'], unique=False)

    op.create_table('subjects',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=10), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )

    op.create_table('grade_subjects',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('grade_id', sa.Uuid(), nullable=False),
        sa.Column('subject_id', sa.Uuid(), nullable=False),
        sa.Column('is_optional', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['grade_id'], ['grades.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_grade_subjects_grade_id'), 'grade_subjects', ['grade_id'], unique=False)
    op.create_index(op.f('ix_grade_subjects_subject_id'), 'grade_subjects', ['subject_id'], unique=False)
    op.create_index('uq_grade_subject', 'grade_subjects', ['grade_id', 'subject_id'], unique=True)

    op.create_table('exam_types',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(length=200), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table('exam_scores',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('subject_id', sa.Uuid(), nullable=False),
        sa.Column('exam_type_id', sa.Uuid(), nullable=False),
        sa.Column('grade_id', sa.Uuid(), nullable=False),
        sa.Column('score', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('academic_year', sa.Integer(), nullable=False),
        sa.Column('term', sa.Integer(), nullable=False),
        sa.Column('comments', sa.String(length=500), nullable=True),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.Column('recorded_by', sa.Uuid(), nullable=True),
        sa.CheckConstraint('score >= 0 AND score <= 100', name='ck_exam_score_range'),
        sa.CheckConstraint('term IN (1, 2, 3)', name='ck_exam_score_term'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subject_id'], ['subjects.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['exam_type_id'], ['exam_types.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['grade_id'], ['grades.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['recorded_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_exam_scores_student_id'), 'exam_scores', ['student_id'], unique=False)
    op.create_index(op.f('ix_exam_scores_grade_id'), 'exam_scores', ['grade_id'], unique=False)
    op.create_index('uq_exam_score', 'exam_scores', ['student_id', 'subject_id', 'exam_type_id', 'academic_year', 'term'], unique=True)

    op.create_table('report_cards',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('grade_id', sa.Uuid(), nullable=False),
        sa.Column('academic_year', sa.Integer(), nullable=False),
        sa.Column('term', sa.Integer(), nullable=False),
        sa.Column('pdf_content', sa.LargeBinary(), nullable=False),
        sa.Column('generated_at', sa.DateTime(), nullable=False),
        sa.Column('generated_by', sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['grade_id'], ['grades.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['generated_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_report_cards_student_id'), 'report_cards', ['student_id'], unique=False)
    op.create_index('ix_report_cards_lookup', 'report_cards', ['grade_id', 'academic_year', 'term'], unique=False)


def downgrade() -> None:
    """Drop every table created in upgrade."""
    op.drop_index('ix_report_cards_lookup', table_name='report_cards')
    op.drop_index(op.f('ix_report_cards_student_id'), table_name='report_cards')
    op.drop_table('report_cards')
    op.drop_index('uq_exam_score', table_name='exam_scores')
    op.drop_index(op.f('ix_exam_scores_grade_id'), table_name='exam_scores')
    op.drop_index(op.f('ix_exam_scores_student_id'), table_name='exam_scores')
    op.drop_table('exam_scores')
    op.drop_table('exam_types')
    op.drop_index('uq_grade_subject', table_name='grade_subjects')
    op.drop_index(op.f('ix_grade_subjects_subject_id'), table_name='grade_subjects')
    op.drop_index(op.f('ix_grade_subjects_grade_id'), table_name='grade_subjects')
    op.drop_table('grade_subjects')
    op.drop_table('subjects')
    op.drop_index('ix_promotion_runs_year_status', table_name='promotion_runs')
    op.drop_index(op.f('ix_promotion_runs_academic_year'), table_name='promotion_runs')
    op.drop_table('promotion_runs')
    op.drop_table('academic_years')
    op.drop_index(op.f('ix_students_grade_id'), table_name='students')
    op.drop_index(op.f('ix_students_student_number'), table_name='students')
    op.drop_table('students')
    op.drop_index('uq_promotion_rule_source', table_name='grade_promotion_rules')
    op.drop_table('grade_promotion_rules')
    op.drop_index('ix_grades_family_level', table_name='grades')
    op.drop_table('grades')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')
