"""
Enrollment manager
Keeps the student <-> course join consistent: a student is enrolled in a course
at most once, and only when the student's teacher teaches that course.
"""
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from lms.errors import ConflictError, ForbiddenError, NotFoundError
from lms.models.database_models import Course, Student, StudentCourse, Teacher, User, UserRole
from lms.models.database_service import (
    get_course, get_courses_by_teacher, get_enrollment, get_student_by_id, get_students_by_teacher,
    transaction,
)
from lms.utils.timeutils import utcnow


def teacher_summary(teacher: Optional[Teacher]) -> Optional[Dict]:
    if teacher is None:
        return None
    return {"id": teacher.id, "name": teacher.user.name, "email": teacher.email}


def enrollment_to_dict(enrollment: StudentCourse) -> Dict:
    course = enrollment.course
    return {
        "id": enrollment.id,
        "student_id": enrollment.student_id,
        "course_id": course.id,
        "course_title": course.title,
        "about_course": course.about_course,
        "enrollment_date": enrollment.enrollment_date,
        "teacher": teacher_summary(course.teacher),
    }


def enroll(db: Session, student: Student, course_id: int, now: datetime = None) -> Dict:
    """Enroll a student in one of their teacher's courses"""
    if student is None:
        raise NotFoundError("Student profile not found")
    course = get_course(db, course_id)
    if not course:
        raise NotFoundError("Course not found")
    if course.teacher_id != student.teacher_id:
        raise ForbiddenError("You can only enroll in courses taught by your teacher")
    if get_enrollment(db, student.id, course.id):
        raise ConflictError("Already enrolled in this course")

    with transaction(db):
        enrollment = StudentCourse(student_id=student.id, course_id=course.id, enrollment_date=now or utcnow())
        db.add(enrollment)
        db.flush()
    logger.info(f"Student {student.id} enrolled in course {course.id}")
    return enrollment_to_dict(enrollment)


def unenroll(db: Session, student: Student, course_id: int) -> None:
    enrollment = get_enrollment(db, student.id, course_id)
    if not enrollment:
        raise NotFoundError("Enrollment not found")
    with transaction(db):
        db.delete(enrollment)
    logger.info(f"Student {student.id} unenrolled from course {course_id}")


def enrollment_details(db: Session, student: Student, course_id: int) -> Dict:
    enrollment = get_enrollment(db, student.id, course_id)
    if not enrollment:
        raise NotFoundError("Enrollment not found")
    course = enrollment.course
    return {
        "student_name": student.user.name,
        "student_email": student.user.email,
        "course_id": course.id,
        "course_title": course.title,
        "enrollment_date": enrollment.enrollment_date,
        "teacher": teacher_summary(course.teacher),
    }


def _enroll_missing(db: Session, pairs, enrolled_at: datetime) -> int:
    """Insert (student_id, course_id) pairs that are not enrolled yet"""
    inserted = 0
    for student_id, course_id in pairs:
        if get_enrollment(db, student_id, course_id):
            continue
        db.add(StudentCourse(student_id=student_id, course_id=course_id, enrollment_date=enrolled_at))
        inserted += 1
    db.flush()
    return inserted


def bulk_enroll_teacher_students(db: Session, course: Course, enrolled_at: datetime) -> int:
    """
    Enroll every existing student of the course's teacher.
    Runs inside the caller's course-creation transaction.
    """
    students = get_students_by_teacher(db, course.teacher_id)
    inserted = _enroll_missing(db, [(s.id, course.id) for s in students], enrolled_at)
    logger.info(f"Auto-enrolled {inserted} students in course {course.id}")
    return inserted


def enroll_in_teacher_courses(db: Session, student: Student, teacher: Teacher, enrolled_at: datetime) -> int:
    """Enroll a student in every course the teacher already owns; no commit"""
    courses = get_courses_by_teacher(db, teacher.id)
    return _enroll_missing(db, [(student.id, c.id) for c in courses], enrolled_at)


def assign_student_to_teacher(db: Session, student_id: int, teacher: Teacher, actor: User,
                              now: datetime = None) -> Student:
    """
    Attach a student to a teacher and enroll them in the teacher's courses.

    Admins may reassign anyone; a teacher may only claim an unassigned student.
    """
    student = get_student_by_id(db, student_id)
    if not student:
        raise NotFoundError("Student not found")
    if actor.role != UserRole.ADMIN and student.teacher_id not in (None, teacher.id):
        raise ForbiddenError("Student is already assigned to another teacher")

    with transaction(db):
        student.teacher_id = teacher.id
        student.teacher_email = teacher.email
        db.flush()
        added = enroll_in_teacher_courses(db, student, teacher, now or utcnow())
    logger.info(f"Student {student.id} assigned to teacher {teacher.id}, {added} new enrollments")
    return student


def student_to_dict(student: Student) -> Dict:
    return {
        "id": student.id,
        "user_id": student.user_id,
        "name": student.user.name,
        "email": student.user.email,
        "program": student.program,
        "semester": student.semester,
        "teacher_id": student.teacher_id,
        "teacher_email": student.teacher_email,
    }


def list_teacher_students(db: Session, teacher: Teacher) -> List[Dict]:
    students = get_students_by_teacher(db, teacher.id)
    result = []
    for s in students:
        item = student_to_dict(s)
        item["courses"] = [
            {"id": e.course.id, "title": e.course.title, "enrollment_date": e.enrollment_date}
            for e in sorted(s.enrollments, key=lambda e: e.id)
        ]
        result.append(item)
    return result
