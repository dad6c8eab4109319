"""
Assignment / submission lifecycle
submitted -> graded; resubmission overwrites the single (assignment, student) row in place.
"""
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple

from loguru import logger
from sqlalchemy.orm import Session

from lms.errors import BadRequestError, ForbiddenError, NotFoundError
from lms.models.database_models import Assignment, Student, Submission, SubmissionStatus
from lms.models.database_service import get_assignment, get_enrollment, get_submission, transaction
from lms.utils.storage import ObjectStorage, StoredObject, delete_quietly
from lms.utils.timeutils import as_utc, utcnow

SUBMISSION_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
    "application/zip",
    "application/x-zip-compressed",
}
SUBMISSION_MAX_BYTES = 10 * 1024 * 1024

ATTACHMENT_MIME_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
ATTACHMENT_MAX_BYTES = 5 * 1024 * 1024


@dataclass
class UploadedFile:
    """An uploaded file already read into memory"""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def validate_upload(upload: Optional[UploadedFile], allowed_types, max_bytes: int, label: str = "File") -> UploadedFile:
    if upload is None or not upload.data:
        raise BadRequestError(f"{label} is required")
    if upload.content_type not in allowed_types:
        raise BadRequestError(f"{label} type {upload.content_type} is not allowed")
    if upload.size > max_bytes:
        raise BadRequestError(f"{label} exceeds the {max_bytes // (1024 * 1024)} MB limit")
    return upload


def validate_attachment(upload: UploadedFile) -> UploadedFile:
    return validate_upload(upload, ATTACHMENT_MIME_TYPES, ATTACHMENT_MAX_BYTES, label="Attachment")


def submit(db: Session, storage: ObjectStorage, assignment_id: int, student: Student,
           upload: Optional[UploadedFile], now: datetime = None,
           max_bytes: int = SUBMISSION_MAX_BYTES) -> Tuple[Submission, Optional[str]]:
    """
    Create or overwrite the student's submission

    Returns:
        (submission, key of the replaced blob to delete after commit, if any)
    """
    now = as_utc(now or utcnow())
    assignment = get_assignment(db, assignment_id)
    if not get_enrollment(db, student.id, assignment.course_id):
        raise ForbiddenError("You are not enrolled in this course")
    if not assignment.is_active:
        raise BadRequestError("Assignment is not accepting submissions")
    validate_upload(upload, SUBMISSION_MIME_TYPES, max_bytes, label="Submission file")

    is_late = now > as_utc(assignment.due_date)
    stored: StoredObject = storage.upload(
        upload.data, f"assignment-submissions/{assignment.id}", upload.filename, upload.content_type
    )

    old_key = None
    try:
        with transaction(db):
            submission = get_submission(db, assignment.id, student.id)
            if submission:
                old_key = submission.submission_key
                submission.submission_file = stored.url
                submission.submission_key = stored.key
                submission.submission_date = now
                submission.status = SubmissionStatus.SUBMITTED
                submission.is_late = is_late
            else:
                submission = Submission(
                    assignment_id=assignment.id,
                    student_id=student.id,
                    submission_date=now,
                    submission_file=stored.url,
                    submission_key=stored.key,
                    status=SubmissionStatus.SUBMITTED,
                    is_late=is_late,
                )
                db.add(submission)
            db.flush()
    except Exception:
        delete_quietly(storage, stored.key)
        raise

    logger.info(f"Student {student.id} submitted assignment {assignment.id} (late={is_late})")
    return submission, old_key if old_key != stored.key else None


def grade(db: Session, assignment: Assignment, submission_id: int, grade: float,
          feedback: Optional[str] = None) -> Submission:
    if not math.isfinite(grade) or grade < 0 or grade > assignment.total_points:
        raise BadRequestError(f"Grade must be between 0 and {assignment.total_points}")
    submission = (
        db.query(Submission)
        .filter(Submission.id == submission_id, Submission.assignment_id == assignment.id)
        .first()
    )
    if not submission:
        raise NotFoundError("Submission not found")

    with transaction(db):
        submission.grade = grade
        submission.feedback = feedback
        submission.status = SubmissionStatus.GRADED
    logger.info(f"Submission {submission.id} graded {grade}/{assignment.total_points}")
    return submission


def submission_to_dict(submission: Submission, include_student: bool = False) -> Dict:
    data = {
        "id": submission.id,
        "assignment_id": submission.assignment_id,
        "student_id": submission.student_id,
        "submission_date": as_utc(submission.submission_date),
        "submission_file": submission.submission_file,
        "grade": submission.grade,
        "feedback": submission.feedback,
        "status": submission.status.value,
        "is_late": submission.is_late,
    }
    if include_student:
        data["student"] = {
            "id": submission.student.id,
            "name": submission.student.user.name,
            "email": submission.student.user.email,
        }
    return data


def assignment_to_dict(assignment: Assignment) -> Dict:
    return {
        "id": assignment.id,
        "title": assignment.title,
        "description": assignment.description,
        "course_id": assignment.course_id,
        "due_date": as_utc(assignment.due_date),
        "total_points": assignment.total_points,
        "is_active": assignment.is_active,
        "attachments": [{"id": a.id, "name": a.name, "url": a.url} for a in assignment.attachments],
    }
