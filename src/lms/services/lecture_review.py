"""
Lecture review scheduler
A lecture moves unreviewed -> reviewed, explicitly by its teacher or automatically
once its review deadline has passed. Read paths apply the automatic flip lazily.
"""
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from lms.errors import BadRequestError
from lms.models.database_models import Lecture, UserRole
from lms.models.database_service import transaction
from lms.utils.timeutils import as_utc, utcnow

DEFAULT_REVIEW_DAYS = 7


def default_review_deadline(created_at: datetime, days: int = DEFAULT_REVIEW_DAYS) -> datetime:
    return as_utc(created_at) + timedelta(days=days)


def is_overdue(lecture: Lecture, now: datetime) -> bool:
    return (
        not lecture.is_reviewed
        and lecture.review_deadline is not None
        and as_utc(now) >= as_utc(lecture.review_deadline)
    )


def refresh_review_state(db: Session, lectures: Iterable[Lecture], now: datetime = None) -> int:
    """Flip and persist every overdue lecture before the caller reads it"""
    now = now or utcnow()
    overdue = [lecture for lecture in lectures if is_overdue(lecture, now)]
    if not overdue:
        return 0
    with transaction(db):
        for lecture in overdue:
            lecture.is_reviewed = True
    logger.info(f"Auto-reviewed {len(overdue)} lectures past their deadline")
    return len(overdue)


def review_overdue_lectures(db: Session, course_id: int, now: datetime = None) -> int:
    """Single conditional bulk update for a course; returns the number of rows changed"""
    now = as_utc(now or utcnow())
    with transaction(db):
        changed = (
            db.query(Lecture)
            .filter(
                Lecture.course_id == course_id,
                Lecture.is_reviewed.is_(False),
                Lecture.review_deadline.isnot(None),
                Lecture.review_deadline <= now,
            )
            .update({Lecture.is_reviewed: True}, synchronize_session=False)
        )
    logger.info(f"Review sweep on course {course_id} marked {changed} lectures reviewed")
    return changed


def apply_review_update(lecture: Lecture, is_reviewed: Optional[bool] = None,
                        review_deadline: Optional[datetime] = None) -> None:
    """Apply a teacher's review change in memory; reviewed lectures never go back"""
    if is_reviewed is False and lecture.is_reviewed:
        raise BadRequestError("A reviewed lecture cannot be marked as unreviewed")
    if is_reviewed:
        lecture.is_reviewed = True
    if review_deadline is not None:
        lecture.review_deadline = as_utc(review_deadline)


def set_review_status(db: Session, lecture: Lecture, is_reviewed: Optional[bool] = None,
                      review_deadline: Optional[datetime] = None, now: datetime = None) -> Lecture:
    """Explicit review transition and/or deadline extension"""
    if is_reviewed is None and review_deadline is None:
        raise BadRequestError("Provide is_reviewed or review_deadline")
    with transaction(db):
        apply_review_update(lecture, is_reviewed, review_deadline)
    refresh_review_state(db, [lecture], now)
    logger.info(f"Lecture {lecture.id} review state: reviewed={lecture.is_reviewed}")
    return lecture


def visible_lectures(lectures: Iterable[Lecture], role: UserRole) -> List[Lecture]:
    if role == UserRole.STUDENT:
        return [lecture for lecture in lectures if lecture.is_reviewed]
    return list(lectures)


def lecture_to_dict(lecture: Lecture) -> Dict:
    return {
        "id": lecture.id,
        "title": lecture.title,
        "content": lecture.content,
        "video_url": lecture.video_url,
        "course_id": lecture.course_id,
        "is_reviewed": lecture.is_reviewed,
        "review_deadline": as_utc(lecture.review_deadline),
        "created_at": as_utc(lecture.created_at),
    }
