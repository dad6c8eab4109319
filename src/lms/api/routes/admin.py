"""
Admin routes
Bulk user import and teacher student listings
"""
from fastapi import APIRouter, File, HTTPException, UploadFile

from lms.api.auth import get_password_hash
from lms.api.dependencies import AdminUser, DBSession, TeacherOrAdmin, TeacherUser
from lms.errors import NotFoundError
from lms.models.database_models import UserRole
from lms.models.database_service import get_teacher_by_id
from lms.services.access import require_teacher_profile
from lms.services.accounts import import_users
from lms.services.enrollment import list_teacher_students
from lms.utils.spreadsheet import parse_user_rows

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post("/upload-users", status_code=201)
async def upload_users(current_user: AdminUser, db: DBSession, file: UploadFile = File(...)):
    """
    Create teachers and students from an Excel or CSV sheet

    Columns: name, email, password, role, teacherEmail (students only).
    The whole sheet is rejected on the first duplicate email or unknown teacher.
    """
    data = await file.read()
    rows, skipped = parse_user_rows(data, file.filename, file.content_type)
    result = import_users(db, rows, get_password_hash)
    result["skipped_rows"] = skipped
    return result


@router.get("/my-students")
async def get_my_students(current_user: TeacherUser, db: DBSession):
    """Students assigned to the calling teacher"""
    teacher = require_teacher_profile(db, current_user)
    return list_teacher_students(db, teacher)


@router.get("/teacher/{teacher_id}/students")
async def get_students_by_teacher_id(teacher_id: int, current_user: TeacherOrAdmin, db: DBSession):
    """Students of a given teacher (admin, or the teacher themself)"""
    teacher = get_teacher_by_id(db, teacher_id)
    if not teacher:
        raise NotFoundError("Teacher not found")
    if current_user.role == UserRole.TEACHER and teacher.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only list your own students")
    return list_teacher_students(db, teacher)
