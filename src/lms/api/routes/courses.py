"""
Course routes
Course CRUD, the aggregated course document and attendance
"""
from fastapi import APIRouter, BackgroundTasks

from lms.api.dependencies import CourseMember, DBSession, Storage, StudentUser, TeacherUser
from lms.config import get_settings
from lms.models.database_service import transaction
from lms.models.schemas import AttendanceUpdate, CourseCreate, CourseUpdate
from lms.services.access import owned_course, require_teacher_profile
from lms.services.course_content import (
    course_document, create_course, replace_attendance, update_course, user_courses,
)
from lms.utils.storage import delete_quietly

router = APIRouter(prefix="/api/courses", tags=["Courses"])


@router.get("")
async def get_my_courses(current_user: CourseMember, db: DBSession):
    """Courses the caller teaches or is enrolled in, newest first"""
    return user_courses(db, current_user)


@router.get("/student")
async def get_student_courses(current_user: StudentUser, db: DBSession):
    """Enrolled courses of the calling student"""
    return user_courses(db, current_user)


@router.post("", status_code=201)
async def create_new_course(payload: CourseCreate, current_user: TeacherUser, db: DBSession):
    """
    Create a course with its sections

    Every student already assigned to the teacher is enrolled automatically.
    """
    teacher = require_teacher_profile(db, current_user)
    course = create_course(db, teacher, payload, review_days=get_settings().lecture_review_days)
    return course_document(db, course.id, current_user)


@router.get("/{course_id}")
async def get_course_by_id(course_id: int, current_user: CourseMember, db: DBSession):
    """Full course document; teachers also get the roster"""
    return course_document(db, course_id, current_user)


@router.put("/{course_id}")
async def update_course_endpoint(course_id: int, payload: CourseUpdate, current_user: TeacherUser, db: DBSession):
    """Update course fields; supplied sections replace the stored ones"""
    course = owned_course(db, course_id, current_user)
    update_course(db, course, payload)
    return course_document(db, course_id, current_user)


@router.delete("/{course_id}")
async def delete_course_endpoint(
    course_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    background_tasks: BackgroundTasks,
):
    """Delete a course with everything under it"""
    course = owned_course(db, course_id, current_user)
    keys = [lecture.video_key for lecture in course.lectures]
    for assignment in course.assignments:
        keys.extend(a.key for a in assignment.attachments)
        keys.extend(s.submission_key for s in assignment.submissions)
    if course.econtent:
        keys.extend(f.file_key for m in course.econtent.modules for f in m.files)

    with transaction(db):
        db.delete(course)
    for key in filter(None, keys):
        background_tasks.add_task(delete_quietly, storage, key)
    return {"message": "Course deleted successfully"}


@router.put("/{course_id}/attendance")
async def update_attendance(course_id: int, payload: AttendanceUpdate, current_user: TeacherUser, db: DBSession):
    """Replace the attendance session map"""
    course = owned_course(db, course_id, current_user)
    return {"course_id": course.id, "attendance": replace_attendance(db, course, payload.sessions)}
