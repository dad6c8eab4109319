"""
Assignment routes
Assignment CRUD with reference attachments, student submissions and grading
"""
import json
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, File, Form, UploadFile
from loguru import logger

from lms.api.dependencies import CourseMember, DBSession, Storage, StudentUser, TeacherUser
from lms.api.uploads import read_upload, read_uploads
from lms.config import get_settings
from lms.errors import BadRequestError
from lms.models.database_models import Assignment, AssignmentAttachment, UserRole
from lms.models.database_service import get_assignment, get_assignments_by_course, get_submission, transaction
from lms.models.schemas import GradeRequest
from lms.services.access import owned_course, readable_course, require_student_profile
from lms.services.submissions import (
    ATTACHMENT_MAX_BYTES, UploadedFile, assignment_to_dict, grade, submission_to_dict, submit, validate_attachment,
)
from lms.utils.storage import ObjectStorage, delete_quietly
from lms.utils.timeutils import as_utc

router = APIRouter(prefix="/api/assignment", tags=["Assignments"])

ATTACHMENT_FOLDER = "assignment-attachments"


def _upload_attachments(storage: ObjectStorage, uploads: List[UploadedFile]) -> List[AssignmentAttachment]:
    """Validate everything first, then upload; a failed upload removes the ones already stored"""
    for upload in uploads:
        validate_attachment(upload)
    attachments = []
    try:
        for upload in uploads:
            stored = storage.upload(upload.data, ATTACHMENT_FOLDER, upload.filename, upload.content_type)
            attachments.append(AssignmentAttachment(name=upload.filename, url=stored.url, key=stored.key))
    except Exception:
        for a in attachments:
            delete_quietly(storage, a.key)
        raise
    return attachments


def _parse_id_list(raw: Optional[str]) -> List[int]:
    """Accept `[1, 2]` or `1,2`"""
    if not raw:
        return []
    try:
        values = json.loads(raw) if raw.strip().startswith("[") else raw.split(",")
        return [int(v) for v in values if str(v).strip()]
    except (ValueError, TypeError) as e:
        raise BadRequestError("remove_attachments must be a list of attachment ids") from e


@router.post("/courses/{course_id}/assignments", status_code=201)
async def create_assignment(
    course_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    title: str = Form(...),
    description: str = Form(...),
    due_date: datetime = Form(...),
    total_points: int = Form(...),
    is_active: bool = Form(True),
    attachments: Optional[List[UploadFile]] = File(None),
):
    """
    Create an assignment

    - **attachments**: pdf, images, Word or Excel files, 5 MB each
    """
    course = owned_course(db, course_id, current_user)
    if not title.strip() or not description.strip():
        raise BadRequestError("Title and description are required")
    if total_points <= 0:
        raise BadRequestError("Total points must be positive")

    stored = _upload_attachments(storage, await read_uploads(attachments, ATTACHMENT_MAX_BYTES))
    assignment = Assignment(
        title=title.strip(),
        description=description,
        course_id=course.id,
        due_date=as_utc(due_date),
        total_points=total_points,
        is_active=is_active,
    )
    assignment.attachments.extend(stored)
    try:
        with transaction(db):
            db.add(assignment)
    except Exception:
        for a in stored:
            delete_quietly(storage, a.key)
        raise
    logger.info(f"Assignment created: {assignment.title} (ID: {assignment.id}) in course {course.id}")
    return assignment_to_dict(assignment)


@router.get("/courses/{course_id}/assignments")
async def get_course_assignments(course_id: int, current_user: CourseMember, db: DBSession):
    """Assignments ordered by due date; students get their own submission embedded"""
    course = readable_course(db, course_id, current_user)
    assignments = get_assignments_by_course(db, course.id)
    student = require_student_profile(db, current_user) if current_user.role == UserRole.STUDENT else None

    result = []
    for assignment in assignments:
        item = assignment_to_dict(assignment)
        if student is not None:
            submission = get_submission(db, assignment.id, student.id)
            item["submission"] = submission_to_dict(submission) if submission else None
        else:
            item["submission_count"] = len(assignment.submissions)
        result.append(item)
    return result


@router.get("/assignments/{assignment_id}")
async def get_assignment_by_id(assignment_id: int, current_user: CourseMember, db: DBSession):
    """Teachers see every submission, students only their own"""
    assignment = get_assignment(db, assignment_id)
    readable_course(db, assignment.course_id, current_user)
    data = assignment_to_dict(assignment)
    if current_user.role == UserRole.TEACHER:
        data["submissions"] = [submission_to_dict(s, include_student=True) for s in assignment.submissions]
    else:
        student = require_student_profile(db, current_user)
        submission = get_submission(db, assignment.id, student.id)
        data["submission"] = submission_to_dict(submission) if submission else None
    return data


@router.put("/assignments/{assignment_id}")
async def update_assignment(
    assignment_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    background_tasks: BackgroundTasks,
    title: str = Form(None),
    description: str = Form(None),
    due_date: Optional[datetime] = Form(None),
    total_points: Optional[int] = Form(None),
    is_active: Optional[bool] = Form(None),
    replace_attachments: bool = Form(False),
    remove_attachments: str = Form(None),
    attachments: Optional[List[UploadFile]] = File(None),
):
    """
    Update an assignment

    - **replace_attachments**: drop every existing attachment before adding the uploaded ones
    - **remove_attachments**: attachment ids to remove, as `[1, 2]` or `1,2`
    """
    assignment = get_assignment(db, assignment_id)
    owned_course(db, assignment.course_id, current_user)
    remove_ids = set(_parse_id_list(remove_attachments))
    stored = _upload_attachments(storage, await read_uploads(attachments, ATTACHMENT_MAX_BYTES))

    if replace_attachments:
        dropped = list(assignment.attachments)
    else:
        dropped = [a for a in assignment.attachments if a.id in remove_ids]
    dropped_keys = [a.key for a in dropped if a.key]

    try:
        with transaction(db):
            if title is not None:
                if not title.strip():
                    raise BadRequestError("Title cannot be empty")
                assignment.title = title.strip()
            if description is not None:
                assignment.description = description
            if due_date is not None:
                assignment.due_date = as_utc(due_date)
            if total_points is not None:
                if total_points <= 0:
                    raise BadRequestError("Total points must be positive")
                assignment.total_points = total_points
            if is_active is not None:
                assignment.is_active = is_active
            for attachment in dropped:
                assignment.attachments.remove(attachment)
            assignment.attachments.extend(stored)
    except Exception:
        for a in stored:
            delete_quietly(storage, a.key)
        raise

    for key in dropped_keys:
        background_tasks.add_task(delete_quietly, storage, key)
    return assignment_to_dict(assignment)


@router.delete("/assignments/{assignment_id}")
async def delete_assignment(
    assignment_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    background_tasks: BackgroundTasks,
):
    """Delete an assignment with its attachments and submissions"""
    assignment = get_assignment(db, assignment_id)
    owned_course(db, assignment.course_id, current_user)
    keys = [a.key for a in assignment.attachments] + [s.submission_key for s in assignment.submissions]
    with transaction(db):
        db.delete(assignment)
    for key in filter(None, keys):
        background_tasks.add_task(delete_quietly, storage, key)
    return {"message": "Assignment deleted successfully"}


@router.post("/assignments/{assignment_id}/submit")
async def submit_assignment(
    assignment_id: int,
    current_user: StudentUser,
    db: DBSession,
    storage: Storage,
    background_tasks: BackgroundTasks,
    file: Optional[UploadFile] = File(None),
):
    """Submit (or resubmit) a file for an assignment"""
    student = require_student_profile(db, current_user)
    max_bytes = get_settings().submission_max_bytes
    upload = await read_upload(file, max_bytes)
    submission, replaced_key = submit(
        db, storage, assignment_id, student, upload, max_bytes=max_bytes,
    )
    if replaced_key:
        background_tasks.add_task(delete_quietly, storage, replaced_key)
    return submission_to_dict(submission)


@router.post("/assignments/{assignment_id}/submissions/{submission_id}/grade")
async def grade_submission(
    assignment_id: int,
    submission_id: int,
    payload: GradeRequest,
    current_user: TeacherUser,
    db: DBSession,
):
    """Grade a submission (0 to the assignment's total points)"""
    assignment = get_assignment(db, assignment_id)
    owned_course(db, assignment.course_id, current_user)
    submission = grade(db, assignment, submission_id, payload.grade, payload.feedback)
    return submission_to_dict(submission)
