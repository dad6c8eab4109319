"""Tests for the enrollment manager."""
from datetime import datetime, timezone

import pytest

from lms.errors import ConflictError, ForbiddenError, NotFoundError
from lms.models.database_models import StudentCourse
from lms.services.enrollment import (
    assign_student_to_teacher, enroll, enrollment_details, list_teacher_students, unenroll,
)
from lms.utils.timeutils import as_utc


class TestEnroll:
    def test_enroll_matching_teacher_succeeds(self, db, make):
        teacher = make.teacher()
        course = make.course(teacher)
        student = make.student()
        student.teacher_id = teacher.id
        db.commit()

        result = enroll(db, student, course.id)

        assert result["course_id"] == course.id
        assert result["course_title"] == "Algorithms"
        assert result["teacher"]["email"] == teacher.email
        assert db.query(StudentCourse).filter_by(student_id=student.id, course_id=course.id).count() == 1

    def test_second_enroll_is_conflict(self, db, make):
        teacher = make.teacher()
        course = make.course(teacher)
        student = make.student()
        student.teacher_id = teacher.id
        db.commit()

        enroll(db, student, course.id)
        with pytest.raises(ConflictError):
            enroll(db, student, course.id)

    def test_auto_enrolled_student_cannot_enroll_again(self, db, make):
        teacher = make.teacher()
        student = make.student(teacher)
        course = make.course(teacher)

        with pytest.raises(ConflictError):
            enroll(db, student, course.id)

    def test_other_teachers_course_is_forbidden(self, db, make):
        course = make.course(make.teacher())
        student = make.student(make.teacher())

        with pytest.raises(ForbiddenError):
            enroll(db, student, course.id)

    def test_unknown_course_is_not_found(self, db, make):
        student = make.student(make.teacher())
        with pytest.raises(NotFoundError):
            enroll(db, student, 999)

    def test_missing_student_profile_is_not_found(self, db, make):
        course = make.course(make.teacher())
        with pytest.raises(NotFoundError):
            enroll(db, None, course.id)


class TestUnenroll:
    def test_unenroll_removes_row(self, db, make):
        teacher = make.teacher()
        student = make.student(teacher)
        course = make.course(teacher)

        unenroll(db, student, course.id)

        assert db.query(StudentCourse).count() == 0

    def test_unenroll_without_row_is_not_found(self, db, make):
        teacher = make.teacher()
        course = make.course(teacher)
        student = make.student(teacher)
        unenroll(db, student, course.id)

        with pytest.raises(NotFoundError):
            unenroll(db, student, course.id)

    def test_enrollment_details(self, db, make):
        teacher = make.teacher(name="Dr. Rao")
        student = make.student(teacher, name="Asha")
        course = make.course(teacher)

        details = enrollment_details(db, student, course.id)

        assert details["student_name"] == "Asha"
        assert details["teacher"]["name"] == "Dr. Rao"


class TestBulkEnrollOnCourseCreation:
    def test_all_teacher_students_enrolled_at_creation_time(self, db, make):
        teacher = make.teacher()
        students = [make.student(teacher) for _ in range(3)]
        make.student(make.teacher())  # another teacher's student
        created_at = datetime(2026, 2, 1, 9, 30, tzinfo=timezone.utc)

        course = make.course(teacher, now=created_at)

        rows = db.query(StudentCourse).filter_by(course_id=course.id).all()
        assert {r.student_id for r in rows} == {s.id for s in students}
        assert all(as_utc(r.enrollment_date) == created_at for r in rows)

    def test_course_without_students(self, db, make):
        course = make.course(make.teacher())
        assert db.query(StudentCourse).filter_by(course_id=course.id).count() == 0


class TestAssignStudentToTeacher:
    def test_teacher_claims_unassigned_student(self, db, make):
        teacher = make.teacher()
        first = make.course(teacher)
        second = make.course(teacher, title="Databases")
        student = make.student()

        assign_student_to_teacher(db, student.id, teacher, teacher.user)

        db.refresh(student)
        assert student.teacher_id == teacher.id
        assert student.teacher_email == teacher.email
        enrolled = {e.course_id for e in student.enrollments}
        assert enrolled == {first.id, second.id}

    def test_reassignment_skips_existing_enrollments(self, db, make):
        teacher = make.teacher()
        student = make.student(teacher)
        course = make.course(teacher)
        admin = make.admin()

        assign_student_to_teacher(db, student.id, teacher, admin)

        assert db.query(StudentCourse).filter_by(student_id=student.id, course_id=course.id).count() == 1

    def test_teacher_cannot_take_another_teachers_student(self, db, make):
        owner = make.teacher()
        other = make.teacher()
        student = make.student(owner)

        with pytest.raises(ForbiddenError):
            assign_student_to_teacher(db, student.id, other, other.user)

    def test_admin_can_reassign(self, db, make):
        owner = make.teacher()
        other = make.teacher()
        student = make.student(owner)

        assign_student_to_teacher(db, student.id, other, make.admin())

        db.refresh(student)
        assert student.teacher_id == other.id

    def test_unknown_student(self, db, make):
        teacher = make.teacher()
        with pytest.raises(NotFoundError):
            assign_student_to_teacher(db, 404, teacher, teacher.user)


def test_list_teacher_students_includes_courses(db, make):
    teacher = make.teacher()
    student = make.student(teacher, name="Ravi")
    course = make.course(teacher)

    listing = list_teacher_students(db, teacher)

    assert len(listing) == 1
    assert listing[0]["id"] == student.id
    assert listing[0]["name"] == "Ravi"
    assert [c["id"] for c in listing[0]["courses"]] == [course.id]
