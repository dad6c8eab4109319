"""
Course content aggregator
Assembles the nested course document (semester, sections, lectures, roster)
and writes course sections on create/update.
"""
from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from lms.errors import BadRequestError, ForbiddenError, NotFoundError
from lms.models.database_models import (
    Course, CourseAttendance, CourseOutcome, CourseSchedule, CourseSyllabus, CreditPoints, Lecture, Teacher,
    User, UserRole, WeeklyPlan,
)
from lms.models.database_service import (
    get_course_roster, get_courses_by_teacher, get_enrolled_courses, get_semester, transaction,
)
from lms.models.schemas import CourseCreate, CourseSections, CourseUpdate
from lms.services.access import readable_course, require_student_profile, require_teacher_profile
from lms.services.enrollment import bulk_enroll_teacher_students, teacher_summary
from lms.services.lecture_review import (
    default_review_deadline, lecture_to_dict, refresh_review_state, visible_lectures,
)
from lms.utils.timeutils import as_utc, utcnow

EMPTY_SCHEDULE = {
    "class_start_date": None,
    "class_end_date": None,
    "mid_semester_exam_date": None,
    "end_semester_exam_date": None,
    "class_days_and_times": [],
}


def roll_number(position: int) -> str:
    """Display roll number for the n-th enrolled student (0-based): CS101, CS102, ..."""
    return f"CS{position + 101:03d}"


def semester_to_dict(semester) -> Optional[Dict]:
    if semester is None:
        return None
    return {
        "id": semester.id,
        "name": semester.name,
        "start_date": as_utc(semester.start_date),
        "end_date": as_utc(semester.end_date),
    }


def _schedule_to_dict(schedule: Optional[CourseSchedule]) -> Dict:
    if schedule is None:
        return dict(EMPTY_SCHEDULE)
    return {
        "class_start_date": as_utc(schedule.class_start_date),
        "class_end_date": as_utc(schedule.class_end_date),
        "mid_semester_exam_date": as_utc(schedule.mid_semester_exam_date),
        "end_semester_exam_date": as_utc(schedule.end_semester_exam_date),
        "class_days_and_times": schedule.class_days_and_times or [],
    }


def _credit_points_to_dict(credit: Optional[CreditPoints]) -> Dict:
    if credit is None:
        return {"lecture": 0, "tutorial": 0, "practical": 0, "project": 0}
    return {
        "lecture": credit.lecture,
        "tutorial": credit.tutorial,
        "practical": credit.practical,
        "project": credit.project,
    }


def course_summary(course: Course) -> Dict:
    return {
        "id": course.id,
        "title": course.title,
        "about_course": course.about_course,
        "semester": semester_to_dict(course.semester),
        "created_at": as_utc(course.created_at),
    }


def course_document(db: Session, course_id: int, user: User, now: datetime = None) -> Dict:
    """Full course read for its teacher or an enrolled student"""
    course = readable_course(db, course_id, user)
    refresh_review_state(db, course.lectures, now)

    document = {
        **course_summary(course),
        "credit_points": _credit_points_to_dict(course.credit_points),
        "learning_outcomes": course.outcome.outcomes if course.outcome else [],
        "weekly_plan": course.weekly_plan.weeks if course.weekly_plan else [],
        "syllabus": course.syllabus.modules if course.syllabus else [],
        "course_schedule": _schedule_to_dict(course.schedule),
        "attendance": course.attendance.sessions if course.attendance else {},
        "lectures": [lecture_to_dict(lecture) for lecture in visible_lectures(course.lectures, user.role)],
    }

    if user.role == UserRole.TEACHER:
        roster = get_course_roster(db, course.id)
        document["students"] = [
            {
                "id": e.student.id,
                "name": e.student.user.name,
                "email": e.student.user.email,
                "program": e.student.program,
                "semester": e.student.semester,
                "roll_number": roll_number(i),
                "enrollment_date": as_utc(e.enrollment_date),
            }
            for i, e in enumerate(roster)
        ]
        document["total_students"] = len(roster)
    else:
        student = require_student_profile(db, user)
        document["student"] = {
            "id": student.id,
            "name": user.name,
            "email": user.email,
            "program": student.program,
            "semester": student.semester,
        }
        document["teacher"] = teacher_summary(course.teacher)
    return document


def user_courses(db: Session, user: User) -> Dict:
    """Course summaries for a teacher's own courses or a student's enrollments, newest first"""
    if user.role == UserRole.TEACHER:
        teacher = require_teacher_profile(db, user)
        courses = get_courses_by_teacher(db, teacher.id)
        header = {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
            "total_courses": len(courses),
            "total_students": len(teacher.students),
        }
    elif user.role == UserRole.STUDENT:
        student = require_student_profile(db, user)
        courses = get_enrolled_courses(db, student.id)
        header = {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
            "program": student.program,
            "semester": student.semester,
            "total_courses": len(courses),
        }
    else:
        raise ForbiddenError("Only teachers and students have courses")
    return {"user": header, "courses": [course_summary(c) for c in courses]}


def _upsert(db: Session, course: Course, attr: str, model, **values) -> None:
    row = getattr(course, attr)
    if row is None:
        row = model(course_id=course.id, **values)
        db.add(row)
        setattr(course, attr, row)
    else:
        for name, value in values.items():
            setattr(row, name, value)


def save_course_sections(db: Session, course: Course, sections: CourseSections) -> None:
    """Upsert every section present in the payload; absent sections are left alone"""
    if sections.learning_outcomes is not None:
        _upsert(db, course, "outcome", CourseOutcome, outcomes=list(sections.learning_outcomes))
    if sections.course_schedule is not None:
        s = sections.course_schedule
        _upsert(
            db, course, "schedule", CourseSchedule,
            class_start_date=as_utc(s.class_start_date),
            class_end_date=as_utc(s.class_end_date),
            mid_semester_exam_date=as_utc(s.mid_semester_exam_date),
            end_semester_exam_date=as_utc(s.end_semester_exam_date),
            class_days_and_times=[slot.model_dump() for slot in s.class_days_and_times],
        )
    if sections.syllabus is not None:
        _upsert(db, course, "syllabus", CourseSyllabus, modules=[m.model_dump() for m in sections.syllabus])
    if sections.weekly_plan is not None:
        _upsert(db, course, "weekly_plan", WeeklyPlan, weeks=[w.model_dump() for w in sections.weekly_plan])
    if sections.credit_points is not None:
        _upsert(db, course, "credit_points", CreditPoints, **sections.credit_points.model_dump())
    if sections.attendance is not None:
        _upsert(db, course, "attendance", CourseAttendance, sessions=dict(sections.attendance))
    db.flush()


def _require_semester(db: Session, semester_id: int):
    semester = get_semester(db, semester_id)
    if not semester:
        raise NotFoundError("Semester not found")
    return semester


def create_course(db: Session, teacher: Teacher, payload: CourseCreate, now: datetime = None,
                  review_days: int = 7) -> Course:
    """Course, its sections and inline lectures, plus auto-enrollment of the teacher's students"""
    now = as_utc(now or utcnow())
    _require_semester(db, payload.semester_id)

    with transaction(db):
        course = Course(
            title=payload.title.strip(),
            about_course=payload.about_course,
            semester_id=payload.semester_id,
            teacher_id=teacher.id,
            created_at=now,
        )
        db.add(course)
        db.flush()
        save_course_sections(db, course, payload)
        for item in payload.lectures:
            db.add(Lecture(
                title=item.title,
                content=item.content,
                video_url=item.video_url,
                course_id=course.id,
                review_deadline=as_utc(item.review_deadline) or default_review_deadline(now, review_days),
            ))
        bulk_enroll_teacher_students(db, course, enrolled_at=now)
    logger.info(f"Course created: {course.title} (ID: {course.id}) by teacher {teacher.id}")
    return course


def update_course(db: Session, course: Course, payload: CourseUpdate) -> Course:
    with transaction(db):
        if payload.title is not None:
            if not payload.title.strip():
                raise BadRequestError("Title cannot be empty")
            course.title = payload.title.strip()
        if payload.about_course is not None:
            course.about_course = payload.about_course
        if payload.semester_id is not None:
            _require_semester(db, payload.semester_id)
            course.semester_id = payload.semester_id
        save_course_sections(db, course, payload)
    logger.info(f"Course {course.id} updated")
    return course


def replace_attendance(db: Session, course: Course, sessions: Dict[str, List[int]]) -> Dict[str, List[int]]:
    with transaction(db):
        _upsert(db, course, "attendance", CourseAttendance, sessions=dict(sessions))
    return course.attendance.sessions
