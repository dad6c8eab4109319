"""initial_lms_schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 08:12:31.204118+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _course_fk():
    return sa.Column(
        'course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), unique=True, nullable=False
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', sa.Enum('ADMIN', 'TEACHER', 'STUDENT', name='userrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'teachers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_teachers_email', 'teachers', ['email'], unique=True)

    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('teachers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('teacher_email', sa.String(255)),
        sa.Column('program', sa.String(255)),
        sa.Column('semester', sa.String(255)),
        *_timestamps(),
    )
    op.create_index('ix_students_teacher_id', 'students', ['teacher_id'])

    op.create_table(
        'semesters',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('start_date < end_date', name='ck_semester_dates'),
    )

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('time', sa.String(50), nullable=False),
        sa.Column('image', sa.String(1024), nullable=False),
        sa.Column('location', sa.String(255), nullable=False),
        sa.Column('link', sa.String(1024), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('about_course', sa.Text(), nullable=False),
        sa.Column('semester_id', sa.Integer(), sa.ForeignKey('semesters.id', ondelete='CASCADE'), nullable=False),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('teachers.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_courses_semester_id', 'courses', ['semester_id'])
    op.create_index('ix_courses_teacher_id', 'courses', ['teacher_id'])

    op.create_table(
        'course_outcomes',
        sa.Column('id', sa.Integer(), primary_key=True),
        _course_fk(),
        sa.Column('outcomes', sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'course_schedules',
        sa.Column('id', sa.Integer(), primary_key=True),
        _course_fk(),
        sa.Column('class_start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('class_end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('mid_semester_exam_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_semester_exam_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('class_days_and_times', sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'course_syllabi',
        sa.Column('id', sa.Integer(), primary_key=True),
        _course_fk(),
        sa.Column('modules', sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'weekly_plans',
        sa.Column('id', sa.Integer(), primary_key=True),
        _course_fk(),
        sa.Column('weeks', sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'credit_points',
        sa.Column('id', sa.Integer(), primary_key=True),
        _course_fk(),
        sa.Column('lecture', sa.Integer(), nullable=False),
        sa.Column('tutorial', sa.Integer(), nullable=False),
        sa.Column('practical', sa.Integer(), nullable=False),
        sa.Column('project', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'course_attendance',
        sa.Column('id', sa.Integer(), primary_key=True),
        _course_fk(),
        sa.Column('sessions', sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'student_courses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('enrollment_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('student_id', 'course_id', name='uq_student_course'),
    )
    op.create_index('ix_student_courses_student_id', 'student_courses', ['student_id'])
    op.create_index('ix_student_courses_course_id', 'student_courses', ['course_id'])

    op.create_table(
        'lectures',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text()),
        sa.Column('video_url', sa.String(1024)),
        sa.Column('video_key', sa.String(1024)),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('is_reviewed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('review_deadline', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_lectures_course_id', 'lectures', ['course_id'])

    op.create_table(
        'assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_points', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_assignments_course_id', 'assignments', ['course_id'])

    op.create_table(
        'assignment_attachments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'assignment_id', sa.Integer(), sa.ForeignKey('assignments.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('url', sa.String(1024), nullable=False),
        sa.Column('key', sa.String(1024)),
        *_timestamps(),
    )
    op.create_index('ix_assignment_attachments_assignment_id', 'assignment_attachments', ['assignment_id'])

    op.create_table(
        'submissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'assignment_id', sa.Integer(), sa.ForeignKey('assignments.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('submission_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('submission_file', sa.String(1024), nullable=False),
        sa.Column('submission_key', sa.String(1024)),
        sa.Column('grade', sa.Float()),
        sa.Column('feedback', sa.Text()),
        sa.Column('status', sa.Enum('SUBMITTED', 'GRADED', 'RETURNED', name='submissionstatus'), nullable=False),
        sa.Column('is_late', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint('assignment_id', 'student_id', name='uq_assignment_student'),
    )
    op.create_index('ix_submissions_assignment_id', 'submissions', ['assignment_id'])
    op.create_index('ix_submissions_student_id', 'submissions', ['student_id'])

    op.create_table(
        'econtents',
        sa.Column('id', sa.Integer(), primary_key=True),
        _course_fk(),
        *_timestamps(),
    )
    op.create_table(
        'econtent_modules',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('econtent_id', sa.Integer(), sa.ForeignKey('econtents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('module_number', sa.Integer(), nullable=False),
        sa.Column('module_title', sa.String(255), nullable=False),
        sa.Column('link', sa.String(1024)),
        *_timestamps(),
    )
    op.create_index('ix_econtent_modules_econtent_id', 'econtent_modules', ['econtent_id'])
    op.create_table(
        'econtent_files',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'module_id', sa.Integer(), sa.ForeignKey('econtent_modules.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('file_type', sa.Enum('PDF', 'PPT', 'PPTX', 'OTHER', name='econtentfiletype'), nullable=False),
        sa.Column('file_url', sa.String(1024), nullable=False),
        sa.Column('file_key', sa.String(1024), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('upload_date', sa.DateTime(timezone=True), server_default=sa.func.now()),
        *_timestamps(),
    )
    op.create_index('ix_econtent_files_module_id', 'econtent_files', ['module_id'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'econtent_files', 'econtent_modules', 'econtents', 'submissions', 'assignment_attachments',
        'assignments', 'lectures', 'student_courses', 'course_attendance', 'credit_points', 'weekly_plans',
        'course_syllabi', 'course_schedules', 'course_outcomes', 'courses', 'events', 'semesters',
        'students', 'teachers', 'users',
    ):
        op.drop_table(table)
    sa.Enum(name='econtentfiletype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='submissionstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
