"""
Course ownership and membership checks shared by the course, lecture,
assignment and e-content routes
"""
from sqlalchemy.orm import Session

from lms.errors import ForbiddenError, NotFoundError
from lms.models.database_models import Course, Student, Teacher, User, UserRole
from lms.models.database_service import get_course, get_enrollment, get_student_by_user, get_teacher_by_user


def require_course(db: Session, course_id: int) -> Course:
    course = get_course(db, course_id)
    if not course:
        raise NotFoundError("Course not found")
    return course


def require_teacher_profile(db: Session, user: User) -> Teacher:
    teacher = get_teacher_by_user(db, user.id)
    if not teacher:
        raise NotFoundError("Teacher profile not found")
    return teacher


def require_student_profile(db: Session, user: User) -> Student:
    student = get_student_by_user(db, user.id)
    if not student:
        raise NotFoundError("Student profile not found")
    return student


def owned_course(db: Session, course_id: int, user: User) -> Course:
    """Course the calling teacher owns; Forbidden for anybody else"""
    course = require_course(db, course_id)
    teacher = require_teacher_profile(db, user) if user.role == UserRole.TEACHER else None
    if teacher is None or course.teacher_id != teacher.id:
        raise ForbiddenError("You are not the teacher of this course")
    return course


def readable_course(db: Session, course_id: int, user: User) -> Course:
    """Course readable by its teacher or an enrolled student"""
    course = require_course(db, course_id)
    if user.role == UserRole.TEACHER:
        teacher = require_teacher_profile(db, user)
        if course.teacher_id == teacher.id:
            return course
        raise ForbiddenError("You are not the teacher of this course")
    if user.role == UserRole.STUDENT:
        student = require_student_profile(db, user)
        if get_enrollment(db, student.id, course.id):
            return course
        raise ForbiddenError("You are not enrolled in this course")
    raise ForbiddenError("Access denied")
