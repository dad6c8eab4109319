"""
Teacher routes
Student listing and assignment of students to teachers
"""
from typing import Optional

from fastapi import APIRouter

from lms.api.dependencies import DBSession, TeacherOrAdmin, TeacherUser
from lms.errors import BadRequestError, NotFoundError
from lms.models.database_models import UserRole
from lms.models.database_service import get_teacher_by_id
from lms.models.schemas import AssignStudentRequest
from lms.services.access import require_teacher_profile
from lms.services.enrollment import assign_student_to_teacher, list_teacher_students, student_to_dict

router = APIRouter(prefix="/api/teachers", tags=["Teachers"])


@router.get("/students")
async def get_teacher_students(current_user: TeacherUser, db: DBSession):
    """Students of the calling teacher with their enrolled courses"""
    teacher = require_teacher_profile(db, current_user)
    return list_teacher_students(db, teacher)


@router.post("/students/{student_id}/assign")
async def assign_student(
    student_id: int,
    current_user: TeacherOrAdmin,
    db: DBSession,
    payload: Optional[AssignStudentRequest] = None,
):
    """
    Assign a student to a teacher and enroll them in the teacher's courses

    - Teachers claim an unassigned student for themselves
    - Admins pass **teacher_id** to assign anyone
    """
    if current_user.role == UserRole.ADMIN:
        if payload is None or payload.teacher_id is None:
            raise BadRequestError("teacher_id is required")
        teacher = get_teacher_by_id(db, payload.teacher_id)
        if not teacher:
            raise NotFoundError("Teacher not found")
    else:
        teacher = require_teacher_profile(db, current_user)

    student = assign_student_to_teacher(db, student_id, teacher, current_user)
    return {"message": "Student assigned successfully", "student": student_to_dict(student)}
