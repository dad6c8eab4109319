"""
E-content routes
Per-course modules of uploaded PDFs and slide decks
"""
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, File, Form, UploadFile
from sqlalchemy.orm import Session

from lms.api.dependencies import CourseMember, DBSession, Storage, TeacherUser
from lms.api.uploads import read_uploads
from lms.errors import NotFoundError
from lms.models.database_models import EContentModule
from lms.models.database_service import get_econtent_module
from lms.services.access import owned_course, readable_course
from lms.services.econtent import (
    ECONTENT_MAX_BYTES, course_econtent, create_module, delete_file, delete_module, module_to_dict, update_module,
)
from lms.utils.storage import delete_quietly

router = APIRouter(prefix="/api/econtent", tags=["E-content"])


def _course_module(db: Session, course_id: int, module_id: int) -> EContentModule:
    module = get_econtent_module(db, module_id)
    if module.econtent.course_id != course_id:
        raise NotFoundError("Module not found")
    return module


@router.post("/course/{course_id}/econtent", status_code=201)
async def create_econtent_module(
    course_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    module_number: int = Form(...),
    module_title: str = Form(...),
    link: str = Form(None),
    files: Optional[List[UploadFile]] = File(None),
):
    """
    Add a module to the course's e-content

    - **files**: pdf, ppt or pptx, 10 MB each
    """
    course = owned_course(db, course_id, current_user)
    uploads = await read_uploads(files, max_bytes=ECONTENT_MAX_BYTES)
    module = create_module(db, storage, course, module_number, module_title, link, uploads)
    return module_to_dict(module)


@router.get("/course/{course_id}/econtent")
async def get_course_econtent(course_id: int, current_user: CourseMember, db: DBSession):
    course = readable_course(db, course_id, current_user)
    return course_econtent(db, course)


@router.get("/course/{course_id}/econtent/module/{module_id}")
async def get_econtent_module_by_id(course_id: int, module_id: int, current_user: CourseMember, db: DBSession):
    readable_course(db, course_id, current_user)
    return module_to_dict(_course_module(db, course_id, module_id))


@router.put("/course/{course_id}/econtent/module/{module_id}")
async def update_econtent_module(
    course_id: int,
    module_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    module_number: Optional[int] = Form(None),
    module_title: str = Form(None),
    link: str = Form(None),
    files: Optional[List[UploadFile]] = File(None),
):
    """Edit module fields; uploaded files are appended"""
    owned_course(db, course_id, current_user)
    module = _course_module(db, course_id, module_id)
    uploads = await read_uploads(files, max_bytes=ECONTENT_MAX_BYTES)
    update_module(db, storage, module, module_number, module_title, link, uploads)
    return module_to_dict(module)


@router.delete("/course/{course_id}/econtent/module/{module_id}")
async def delete_econtent_module(
    course_id: int,
    module_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    background_tasks: BackgroundTasks,
):
    owned_course(db, course_id, current_user)
    module = _course_module(db, course_id, module_id)
    for key in delete_module(db, module):
        background_tasks.add_task(delete_quietly, storage, key)
    return {"message": "Module deleted successfully"}


@router.delete("/course/{course_id}/econtent/module/{module_id}/file/{file_id}")
async def delete_econtent_file(
    course_id: int,
    module_id: int,
    file_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    background_tasks: BackgroundTasks,
):
    owned_course(db, course_id, current_user)
    module = _course_module(db, course_id, module_id)
    background_tasks.add_task(delete_quietly, storage, delete_file(db, module, file_id))
    return {"message": "File deleted successfully"}
