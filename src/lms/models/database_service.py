"""
Database service functions for CRUD operations
Helpers only flush; callers own the commit through `transaction`.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.errors import BadRequestError, ConflictError, NotFoundError
from lms.utils.timeutils import as_utc
from .database_models import (
    Assignment, Course, EContent, EContentModule, Event, Lecture, Semester, Student, StudentCourse,
    Submission, Teacher, User, UserRole,
)


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit on success, roll back on any error; unique-constraint races surface as Conflict"""
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error, rolled back: {e.orig}")
        raise ConflictError("Resource already exists") from e
    except Exception:
        db.rollback()
        raise

# User operations
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()

def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def create_user(db: Session, name: str, email: str, hashed_password: str, role: UserRole = UserRole.STUDENT) -> User:
    if get_user_by_email(db, email):
        raise ConflictError(f"Email {email} is already registered")
    user = User(name=name, email=email.strip().lower(), hashed_password=hashed_password, role=role)
    db.add(user)
    db.flush()
    logger.info(f"User created: {user.email} (ID: {user.id}, role: {role.value})")
    return user

# Teacher / student profiles
def create_teacher_profile(db: Session, user: User) -> Teacher:
    teacher = Teacher(user_id=user.id, email=user.email)
    db.add(teacher)
    db.flush()
    return teacher

def create_student_profile(db: Session, user: User, teacher: Optional[Teacher] = None,
                           program: str = None, semester: str = None) -> Student:
    student = Student(
        user_id=user.id,
        teacher_id=teacher.id if teacher else None,
        teacher_email=teacher.email if teacher else None,
        program=program,
        semester=semester,
    )
    db.add(student)
    db.flush()
    return student

def get_teacher_by_id(db: Session, teacher_id: int) -> Optional[Teacher]:
    return db.query(Teacher).filter(Teacher.id == teacher_id).first()

def get_teacher_by_email(db: Session, email: str) -> Optional[Teacher]:
    return db.query(Teacher).filter(Teacher.email == email.strip().lower()).first()

def get_teacher_by_user(db: Session, user_id: int) -> Optional[Teacher]:
    return db.query(Teacher).filter(Teacher.user_id == user_id).first()

def get_student_by_id(db: Session, student_id: int) -> Optional[Student]:
    return db.query(Student).filter(Student.id == student_id).first()

def get_student_by_user(db: Session, user_id: int) -> Optional[Student]:
    return db.query(Student).filter(Student.user_id == user_id).first()

def get_students_by_teacher(db: Session, teacher_id: int) -> List[Student]:
    return db.query(Student).filter(Student.teacher_id == teacher_id).order_by(Student.id).all()

# Semester operations
def list_semesters(db: Session) -> List[Semester]:
    return db.query(Semester).order_by(Semester.start_date).all()

def get_semester(db: Session, semester_id: int) -> Optional[Semester]:
    return db.query(Semester).filter(Semester.id == semester_id).first()

def create_semester(db: Session, name: str, start_date: datetime, end_date: datetime) -> Semester:
    start_date, end_date = as_utc(start_date), as_utc(end_date)
    if end_date <= start_date:
        raise BadRequestError("Semester end date must be after its start date")
    semester = Semester(name=name.strip(), start_date=start_date, end_date=end_date)
    db.add(semester)
    db.flush()
    logger.info(f"Semester created: {semester.name} (ID: {semester.id})")
    return semester

# Course operations
def get_course(db: Session, course_id: int) -> Optional[Course]:
    return db.query(Course).filter(Course.id == course_id).first()

def get_courses_by_teacher(db: Session, teacher_id: int) -> List[Course]:
    return (
        db.query(Course)
        .filter(Course.teacher_id == teacher_id)
        .order_by(Course.created_at.desc(), Course.id.desc())
        .all()
    )

def get_enrolled_courses(db: Session, student_id: int) -> List[Course]:
    return (
        db.query(Course)
        .join(StudentCourse, StudentCourse.course_id == Course.id)
        .filter(StudentCourse.student_id == student_id)
        .order_by(Course.created_at.desc(), Course.id.desc())
        .all()
    )

# Enrollment operations
def get_enrollment(db: Session, student_id: int, course_id: int) -> Optional[StudentCourse]:
    return (
        db.query(StudentCourse)
        .filter(StudentCourse.student_id == student_id, StudentCourse.course_id == course_id)
        .first()
    )

def get_course_roster(db: Session, course_id: int) -> List[StudentCourse]:
    """Enrollments of a course in enrollment order"""
    return (
        db.query(StudentCourse)
        .filter(StudentCourse.course_id == course_id)
        .order_by(StudentCourse.enrollment_date, StudentCourse.id)
        .all()
    )

# Lecture operations
def get_lecture(db: Session, course_id: int, lecture_id: int) -> Lecture:
    lecture = db.query(Lecture).filter(Lecture.id == lecture_id, Lecture.course_id == course_id).first()
    if not lecture:
        raise NotFoundError("Lecture not found")
    return lecture

def get_lectures_by_course(db: Session, course_id: int) -> List[Lecture]:
    return db.query(Lecture).filter(Lecture.course_id == course_id).order_by(Lecture.id).all()

# Assignment operations
def get_assignment(db: Session, assignment_id: int) -> Assignment:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise NotFoundError("Assignment not found")
    return assignment

def get_assignments_by_course(db: Session, course_id: int) -> List[Assignment]:
    return (
        db.query(Assignment)
        .filter(Assignment.course_id == course_id)
        .order_by(Assignment.due_date, Assignment.id)
        .all()
    )

def get_submission(db: Session, assignment_id: int, student_id: int) -> Optional[Submission]:
    return (
        db.query(Submission)
        .filter(Submission.assignment_id == assignment_id, Submission.student_id == student_id)
        .first()
    )

# E-content operations
def get_econtent_by_course(db: Session, course_id: int) -> Optional[EContent]:
    return db.query(EContent).filter(EContent.course_id == course_id).first()

def get_econtent_module(db: Session, module_id: int) -> EContentModule:
    module = db.query(EContentModule).filter(EContentModule.id == module_id).first()
    if not module:
        raise NotFoundError("E-content module not found")
    return module

# Event operations
def list_events(db: Session) -> List[Event]:
    return db.query(Event).order_by(Event.date, Event.id).all()

def get_event(db: Session, event_id: int) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event not found")
    return event

def create_event(db: Session, **fields) -> Event:
    fields["date"] = as_utc(fields["date"])
    event = Event(**fields)
    db.add(event)
    db.flush()
    logger.info(f"Event created: {event.name} (ID: {event.id})")
    return event

def update_event(db: Session, event: Event, **fields) -> Event:
    for name, value in fields.items():
        if value is None:
            continue
        setattr(event, name, as_utc(value) if name == "date" else value)
    db.flush()
    return event
