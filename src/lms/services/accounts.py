"""
Account creation: self-registration and admin bulk import
"""
from datetime import datetime
from typing import Callable, Dict, List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from lms.errors import ConflictError, NotFoundError
from lms.models.database_models import Student, Teacher, User, UserRole
from lms.models.database_service import (
    create_student_profile, create_teacher_profile, create_user, get_teacher_by_email, get_user_by_email,
    transaction,
)
from lms.models.schemas import ImportedUserRow, RegisterRequest
from lms.services.enrollment import enroll_in_teacher_courses
from lms.utils.timeutils import utcnow


def _resolve_teacher(db: Session, teacher_email: Optional[str]) -> Optional[Teacher]:
    if not teacher_email:
        return None
    teacher = get_teacher_by_email(db, teacher_email)
    if not teacher:
        raise NotFoundError(f"Teacher with email {teacher_email} not found")
    return teacher


def _add_account(db: Session, name: str, email: str, hashed_password: str, role: UserRole,
                 teacher_email: Optional[str] = None, program: str = None, semester: str = None,
                 now: datetime = None) -> User:
    """Create a user with its profile; students with a teacher join that teacher's courses"""
    user = create_user(db, name, email, hashed_password, role)
    if role == UserRole.TEACHER:
        create_teacher_profile(db, user)
    else:
        teacher = _resolve_teacher(db, teacher_email)
        student = create_student_profile(db, user, teacher, program=program, semester=semester)
        if teacher is not None:
            enroll_in_teacher_courses(db, student, teacher, now or utcnow())
    return user


def register_account(db: Session, payload: RegisterRequest, hashed_password: str) -> User:
    with transaction(db):
        user = _add_account(
            db, payload.name, payload.email, hashed_password, UserRole(payload.role),
            teacher_email=payload.teacher_email, program=payload.program, semester=payload.semester,
        )
    return user


def import_users(db: Session, rows: List[ImportedUserRow], hash_password: Callable[[str], str],
                 now: datetime = None) -> Dict:
    """
    Create all rows in one transaction, teachers first so students can reference them.
    The first duplicate email or unknown teacher email aborts the whole batch.
    """
    now = now or utcnow()
    teachers = [r for r in rows if r.role == "teacher"]
    students = [r for r in rows if r.role == "student"]
    seen = set()
    created: List[User] = []

    with transaction(db):
        for row in teachers + students:
            if row.email in seen or get_user_by_email(db, row.email):
                raise ConflictError(f"Duplicate email: {row.email}")
            seen.add(row.email)
            created.append(_add_account(
                db, row.name, row.email, hash_password(row.password), UserRole(row.role),
                teacher_email=row.teacher_email, now=now,
            ))

    logger.info(f"Imported {len(teachers)} teachers and {len(students)} students")
    return {
        "teachers_created": len(teachers),
        "students_created": len(students),
        "users": [{"id": u.id, "name": u.name, "email": u.email, "role": u.role.value} for u in created],
    }


def user_to_dict(user: User) -> Dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "teacher_id": user.teacher.id if user.teacher else None,
        "student_id": user.student.id if user.student else None,
    }
