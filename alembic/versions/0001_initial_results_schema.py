"""Initial school results schema.

Revision ID: 0001_initial_results_schema
Revises:
Create Date: 2026-10-19

Creates the tenant and grading tables:
- schools: tenant with period system and matricule settings
- classes, students, subjects: class rosters and weighted subjects
- exams: exams with publication flag
- grades: recorded scores, upserted on (student, subject, exam, semester, exam_type)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_results_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


periodsystem = sa.Enum('SEMESTRE', 'TRIMESTRE', name='periodsystem')


def timestamps() -> list[sa.Column]:
    """created_at / updated_at columns shared by every table."""
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def school_fk() -> sa.Column:
    return sa.Column(
        'school_id',
        sa.BigInteger(),
        sa.ForeignKey('schools.id', ondelete='CASCADE'),
        nullable=False,
    )


def upgrade() -> None:
    """Create school results tables."""
    op.create_table(
        'schools',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('academic_year', sa.String(9), nullable=True),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('period_system', periodsystem, nullable=False, server_default='SEMESTRE'),
        sa.Column('strict_semester_match', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('student_matricule_prefix', sa.String(20), nullable=False, server_default='ELEVE'),
        sa.Column('auto_generate_matricule', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )
    op.create_index('ix_schools_slug', 'schools', ['slug'], unique=True)

    op.create_table(
        'classes',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        school_fk(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('level', sa.String(50), nullable=True),
        sa.Column('section', sa.String(50), nullable=True),
        sa.Column('academic_year', sa.String(9), nullable=True),
        *timestamps(),
        sa.UniqueConstraint('school_id', 'name', 'academic_year', name='uq_class_school_name_year'),
    )
    op.create_index('ix_classes_school_id', 'classes', ['school_id'])

    op.create_table(
        'students',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        school_fk(),
        sa.Column('class_id', sa.BigInteger(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('matricule', sa.String(50), nullable=False),
        sa.Column('first_name', sa.String(120), nullable=False),
        sa.Column('last_name', sa.String(120), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('place_of_birth', sa.String(120), nullable=True),
        sa.Column('parent_name', sa.String(255), nullable=True),
        sa.Column('parent_phone_no', sa.String(50), nullable=True),
        *timestamps(),
        sa.UniqueConstraint('school_id', 'matricule', name='uq_student_school_matricule'),
    )
    op.create_index('ix_students_school_id', 'students', ['school_id'])
    op.create_index('ix_students_class_id', 'students', ['class_id'])
    op.create_index('ix_students_matricule', 'students', ['matricule'])

    op.create_table(
        'subjects',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        school_fk(),
        sa.Column('class_id', sa.BigInteger(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('abbreviation', sa.String(20), nullable=True),
        sa.Column('coefficient', sa.DECIMAL(6, 2), nullable=True, server_default='1'),
        sa.Column('max_score', sa.DECIMAL(6, 2), nullable=True, server_default='20'),
        *timestamps(),
        sa.UniqueConstraint('class_id', 'name', name='uq_subject_class_name'),
    )
    op.create_index('ix_subjects_school_id', 'subjects', ['school_id'])
    op.create_index('ix_subjects_class_id', 'subjects', ['class_id'])

    op.create_table(
        'exams',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        school_fk(),
        sa.Column('class_id', sa.BigInteger(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('exam_type', sa.String(50), nullable=True),
        sa.Column('semester', sa.String(30), nullable=True),
        sa.Column('exam_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamps(),
    )
    op.create_index('ix_exams_school_id', 'exams', ['school_id'])
    op.create_index('ix_exams_class_id', 'exams', ['class_id'])
    op.create_index('ix_exams_exam_date', 'exams', ['exam_date'])

    op.create_table(
        'grades',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        school_fk(),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.BigInteger(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('exam_id', sa.BigInteger(), sa.ForeignKey('exams.id', ondelete='CASCADE'), nullable=True),
        sa.Column('grade_value', sa.DECIMAL(6, 2), nullable=False),
        sa.Column('max_grade', sa.DECIMAL(6, 2), nullable=False, server_default='20'),
        sa.Column('coefficient', sa.DECIMAL(6, 2), nullable=False, server_default='1'),
        sa.Column('exam_type', sa.String(50), nullable=False, server_default='devoir'),
        sa.Column('semester', sa.String(30), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_grades_school_id', 'grades', ['school_id'])
    op.create_index('ix_grades_student_id', 'grades', ['student_id'])
    op.create_index('ix_grades_subject_id', 'grades', ['subject_id'])
    op.create_index('ix_grades_exam_id', 'grades', ['exam_id'])
    op.create_index('ix_grades_school_student_subject', 'grades', ['school_id', 'student_id', 'subject_id'])


def downgrade() -> None:
    """Drop school results tables."""
    op.drop_table('grades')
    op.drop_table('exams')
    op.drop_table('subjects')
    op.drop_table('students')
    op.drop_table('classes')
    op.drop_table('schools')
    periodsystem.drop(op.get_bind(), checkfirst=True)
