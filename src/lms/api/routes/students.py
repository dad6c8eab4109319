"""
Student routes
Self-service enrollment and profile updates
"""
from fastapi import APIRouter

from lms.api.dependencies import DBSession, StudentUser
from lms.models.database_service import transaction
from lms.models.schemas import ProfileUpdate
from lms.services.access import require_student_profile
from lms.services.enrollment import enroll, enrollment_details, student_to_dict, unenroll

router = APIRouter(prefix="/api/students", tags=["Students"])


@router.post("/courses/{course_id}/enroll", status_code=201)
async def enroll_in_course(course_id: int, current_user: StudentUser, db: DBSession):
    """Enroll in a course taught by the student's teacher"""
    student = require_student_profile(db, current_user)
    return enroll(db, student, course_id)


@router.delete("/courses/{course_id}/enroll")
async def unenroll_from_course(course_id: int, current_user: StudentUser, db: DBSession):
    """Drop a course"""
    student = require_student_profile(db, current_user)
    unenroll(db, student, course_id)
    return {"message": "Unenrolled successfully"}


@router.get("/courses/{course_id}/enrollment")
async def get_enrollment_details(course_id: int, current_user: StudentUser, db: DBSession):
    student = require_student_profile(db, current_user)
    return enrollment_details(db, student, course_id)


@router.put("/profile")
async def update_profile(payload: ProfileUpdate, current_user: StudentUser, db: DBSession):
    """Update name, program and semester"""
    student = require_student_profile(db, current_user)
    with transaction(db):
        if payload.name is not None and payload.name.strip():
            current_user.name = payload.name.strip()
        if payload.program is not None:
            student.program = payload.program
        if payload.semester is not None:
            student.semester = payload.semester
    return student_to_dict(student)
