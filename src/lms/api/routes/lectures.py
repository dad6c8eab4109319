"""
Lecture routes
Lecture CRUD with optional video upload, plus the review lifecycle
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, File, Form, UploadFile
from loguru import logger

from lms.api.dependencies import CourseMember, DBSession, Storage, StudentUser, TeacherUser
from lms.api.uploads import read_upload
from lms.config import get_settings
from lms.errors import BadRequestError, NotFoundError
from lms.models.database_models import Lecture
from lms.models.database_service import get_lecture, get_lectures_by_course, transaction
from lms.models.schemas import LectureReviewRequest
from lms.services.access import owned_course, readable_course
from lms.services.lecture_review import (
    apply_review_update, default_review_deadline, lecture_to_dict, refresh_review_state,
    review_overdue_lectures, set_review_status, visible_lectures,
)
from lms.utils.storage import ObjectStorage, StoredObject, delete_quietly
from lms.utils.timeutils import as_utc, utcnow

router = APIRouter(prefix="/api/lectures", tags=["Lectures"])


async def _upload_video(storage: ObjectStorage, course_id: int, video: Optional[UploadFile]) -> Optional[StoredObject]:
    upload = await read_upload(video)
    if upload is None:
        return None
    if not upload.content_type.startswith("video/"):
        raise BadRequestError("Only video files are allowed")
    return storage.upload(upload.data, f"courses/{course_id}/lectures", upload.filename, upload.content_type)


@router.get("/{course_id}/lectures")
async def get_course_lectures(course_id: int, current_user: CourseMember, db: DBSession):
    """Lectures of a course; students only see reviewed ones"""
    course = readable_course(db, course_id, current_user)
    lectures = get_lectures_by_course(db, course.id)
    refresh_review_state(db, lectures)
    return [lecture_to_dict(lecture) for lecture in visible_lectures(lectures, current_user.role)]


@router.get("/student/{course_id}/lectures")
async def get_student_lectures(course_id: int, current_user: StudentUser, db: DBSession):
    """Reviewed lectures of a course the student is enrolled in"""
    course = readable_course(db, course_id, current_user)
    lectures = get_lectures_by_course(db, course.id)
    refresh_review_state(db, lectures)
    return {
        "course_id": course.id,
        "course_title": course.title,
        "lectures": [lecture_to_dict(lecture) for lecture in visible_lectures(lectures, current_user.role)],
    }


@router.put("/{course_id}/lectures/review-all")
async def review_all_lectures(course_id: int, current_user: TeacherUser, db: DBSession):
    """Mark every lecture past its review deadline as reviewed"""
    course = owned_course(db, course_id, current_user)
    changed = review_overdue_lectures(db, course.id)
    return {"message": f"{changed} lectures marked as reviewed", "updated_count": changed}


@router.get("/{course_id}/lectures/{lecture_id}")
async def get_lecture_by_id(course_id: int, lecture_id: int, current_user: CourseMember, db: DBSession):
    readable_course(db, course_id, current_user)
    lecture = get_lecture(db, course_id, lecture_id)
    refresh_review_state(db, [lecture])
    if not visible_lectures([lecture], current_user.role):
        raise NotFoundError("Lecture not found")
    return lecture_to_dict(lecture)


@router.post("/{course_id}/lectures", status_code=201)
async def create_lecture(
    course_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    title: str = Form(...),
    content: str = Form(None),
    video_url: str = Form(None),
    review_deadline: Optional[datetime] = Form(None),
    video: Optional[UploadFile] = File(None),
):
    """
    Create a lecture

    - **video**: uploaded video file (takes precedence over **video_url**)
    - **review_deadline**: defaults to creation time + the configured review window
    """
    course = owned_course(db, course_id, current_user)
    if not title.strip():
        raise BadRequestError("Title is required")
    now = utcnow()
    stored = await _upload_video(storage, course.id, video)

    lecture = Lecture(
        title=title.strip(),
        content=content,
        video_url=stored.url if stored else video_url,
        video_key=stored.key if stored else None,
        course_id=course.id,
        review_deadline=as_utc(review_deadline) or default_review_deadline(now, get_settings().lecture_review_days),
        created_at=now,
    )
    try:
        with transaction(db):
            db.add(lecture)
    except Exception:
        if stored:
            delete_quietly(storage, stored.key)
        raise
    logger.info(f"Lecture created: {lecture.title} (ID: {lecture.id}) in course {course.id}")
    return lecture_to_dict(lecture)


@router.put("/{course_id}/lectures/{lecture_id}")
async def update_lecture(
    course_id: int,
    lecture_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    background_tasks: BackgroundTasks,
    title: str = Form(None),
    content: str = Form(None),
    video_url: str = Form(None),
    is_reviewed: Optional[bool] = Form(None),
    review_deadline: Optional[datetime] = Form(None),
    video: Optional[UploadFile] = File(None),
):
    """Update a lecture; a new video replaces the old blob after commit"""
    owned_course(db, course_id, current_user)
    lecture = get_lecture(db, course_id, lecture_id)
    stored = await _upload_video(storage, course_id, video)
    old_key = lecture.video_key if stored else None

    try:
        with transaction(db):
            if title is not None:
                if not title.strip():
                    raise BadRequestError("Title cannot be empty")
                lecture.title = title.strip()
            if content is not None:
                lecture.content = content
            if stored:
                lecture.video_url = stored.url
                lecture.video_key = stored.key
            elif video_url is not None:
                old_key = lecture.video_key
                lecture.video_url = video_url or None
                lecture.video_key = None
            apply_review_update(lecture, is_reviewed, review_deadline)
    except Exception:
        if stored:
            delete_quietly(storage, stored.key)
        raise

    if old_key:
        background_tasks.add_task(delete_quietly, storage, old_key)
    refresh_review_state(db, [lecture])
    return lecture_to_dict(lecture)


@router.delete("/{course_id}/lectures/{lecture_id}")
async def delete_lecture(
    course_id: int,
    lecture_id: int,
    current_user: TeacherUser,
    db: DBSession,
    storage: Storage,
    background_tasks: BackgroundTasks,
):
    """Delete a lecture; its video blob is removed best-effort afterwards"""
    owned_course(db, course_id, current_user)
    lecture = get_lecture(db, course_id, lecture_id)
    video_key = lecture.video_key
    with transaction(db):
        db.delete(lecture)
    if video_key:
        background_tasks.add_task(delete_quietly, storage, video_key)
    return {"message": "Lecture deleted successfully"}


@router.put("/{course_id}/lectures/{lecture_id}/review")
async def update_review_status(
    course_id: int,
    lecture_id: int,
    payload: LectureReviewRequest,
    current_user: TeacherUser,
    db: DBSession,
):
    """Mark a lecture reviewed and/or move its review deadline"""
    owned_course(db, course_id, current_user)
    lecture = get_lecture(db, course_id, lecture_id)
    set_review_status(db, lecture, payload.is_reviewed, payload.review_deadline)
    return lecture_to_dict(lecture)
