"""
SQLAlchemy database models for the LMS backend
"""
import enum
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, Float, Boolean, JSON, Enum, UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

# ============= USER MANAGEMENT =============

class UserRole(str, enum.Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    teacher = relationship("Teacher", back_populates="user", uselist=False, cascade="all, delete-orphan")
    student = relationship("Student", back_populates="user", uselist=False, cascade="all, delete-orphan")


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="teacher")
    courses = relationship("Course", back_populates="teacher", cascade="all, delete-orphan")
    students = relationship("Student", back_populates="teacher")


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="SET NULL"), index=True, nullable=True)
    teacher_email = Column(String(255))
    program = Column(String(255))
    semester = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="student")
    teacher = relationship("Teacher", back_populates="students")
    enrollments = relationship("StudentCourse", back_populates="student", cascade="all, delete-orphan")
    submissions = relationship("Submission", back_populates="student", cascade="all, delete-orphan")

# ============= ACADEMIC CALENDAR =============

class Semester(Base):
    __tablename__ = "semesters"
    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_semester_dates"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    courses = relationship("Course", back_populates="semester", cascade="all, delete-orphan")


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    date = Column(DateTime(timezone=True), nullable=False)
    time = Column(String(50), nullable=False)
    image = Column(String(1024), nullable=False)
    location = Column(String(255), nullable=False)
    link = Column(String(1024), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

# ============= COURSE MANAGEMENT =============

class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    about_course = Column(Text, nullable=False)
    semester_id = Column(Integer, ForeignKey("semesters.id", ondelete="CASCADE"), index=True, nullable=False)
    teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    semester = relationship("Semester", back_populates="courses")
    teacher = relationship("Teacher", back_populates="courses")
    enrollments = relationship("StudentCourse", back_populates="course", cascade="all, delete-orphan")
    lectures = relationship(
        "Lecture", back_populates="course", cascade="all, delete-orphan",
        order_by="Lecture.id",
    )
    assignments = relationship("Assignment", back_populates="course", cascade="all, delete-orphan")
    econtent = relationship("EContent", back_populates="course", uselist=False, cascade="all, delete-orphan")

    outcome = relationship("CourseOutcome", uselist=False, cascade="all, delete-orphan")
    schedule = relationship("CourseSchedule", uselist=False, cascade="all, delete-orphan")
    syllabus = relationship("CourseSyllabus", uselist=False, cascade="all, delete-orphan")
    weekly_plan = relationship("WeeklyPlan", uselist=False, cascade="all, delete-orphan")
    credit_points = relationship("CreditPoints", uselist=False, cascade="all, delete-orphan")
    attendance = relationship("CourseAttendance", uselist=False, cascade="all, delete-orphan")


class CourseOutcome(Base):
    __tablename__ = "course_outcomes"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), unique=True, nullable=False)
    outcomes = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CourseSchedule(Base):
    __tablename__ = "course_schedules"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), unique=True, nullable=False)
    class_start_date = Column(DateTime(timezone=True), nullable=False)
    class_end_date = Column(DateTime(timezone=True), nullable=False)
    mid_semester_exam_date = Column(DateTime(timezone=True), nullable=False)
    end_semester_exam_date = Column(DateTime(timezone=True), nullable=False)
    class_days_and_times = Column(JSON, nullable=False, default=list)  # [{"day": "Monday", "time": "10:00"}]
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CourseSyllabus(Base):
    __tablename__ = "course_syllabi"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), unique=True, nullable=False)
    modules = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class WeeklyPlan(Base):
    __tablename__ = "weekly_plans"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), unique=True, nullable=False)
    weeks = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CreditPoints(Base):
    __tablename__ = "credit_points"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), unique=True, nullable=False)
    lecture = Column(Integer, nullable=False, default=0)
    tutorial = Column(Integer, nullable=False, default=0)
    practical = Column(Integer, nullable=False, default=0)
    project = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class CourseAttendance(Base):
    __tablename__ = "course_attendance"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), unique=True, nullable=False)
    sessions = Column(JSON, nullable=False, default=dict)  # session key -> [student ids]
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

# ============= ENROLLMENT =============

class StudentCourse(Base):
    __tablename__ = "student_courses"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_student_course"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    enrollment_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    student = relationship("Student", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")

# ============= LECTURES =============

class Lecture(Base):
    __tablename__ = "lectures"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text)
    video_url = Column(String(1024))
    video_key = Column(String(1024))
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    is_reviewed = Column(Boolean, nullable=False, default=False)
    review_deadline = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    course = relationship("Course", back_populates="lectures")

# ============= ASSIGNMENTS =============

class SubmissionStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    GRADED = "graded"
    RETURNED = "returned"


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), index=True, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=False)
    total_points = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    course = relationship("Course", back_populates="assignments")
    attachments = relationship(
        "AssignmentAttachment", back_populates="assignment", cascade="all, delete-orphan",
        order_by="AssignmentAttachment.id",
    )
    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")


class AssignmentAttachment(Base):
    __tablename__ = "assignment_attachments"

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    url = Column(String(1024), nullable=False)
    key = Column(String(1024))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    assignment = relationship("Assignment", back_populates="attachments")


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_assignment_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), index=True, nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    submission_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    submission_file = Column(String(1024), nullable=False)
    submission_key = Column(String(1024))
    grade = Column(Float)
    feedback = Column(Text)
    status = Column(Enum(SubmissionStatus), nullable=False, default=SubmissionStatus.SUBMITTED)
    is_late = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("Student", back_populates="submissions")

# ============= E-CONTENT =============

class EContentFileType(str, enum.Enum):
    PDF = "pdf"
    PPT = "ppt"
    PPTX = "pptx"
    OTHER = "other"


class EContent(Base):
    __tablename__ = "econtents"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    course = relationship("Course", back_populates="econtent")
    modules = relationship(
        "EContentModule", back_populates="econtent", cascade="all, delete-orphan",
        order_by="EContentModule.module_number",
    )


class EContentModule(Base):
    __tablename__ = "econtent_modules"

    id = Column(Integer, primary_key=True, index=True)
    econtent_id = Column(Integer, ForeignKey("econtents.id", ondelete="CASCADE"), index=True, nullable=False)
    module_number = Column(Integer, nullable=False)
    module_title = Column(String(255), nullable=False)
    link = Column(String(1024))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    econtent = relationship("EContent", back_populates="modules")
    files = relationship(
        "EContentFile", back_populates="module", cascade="all, delete-orphan", order_by="EContentFile.id",
    )


class EContentFile(Base):
    __tablename__ = "econtent_files"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("econtent_modules.id", ondelete="CASCADE"), index=True, nullable=False)
    file_type = Column(Enum(EContentFileType), nullable=False, default=EContentFileType.OTHER)
    file_url = Column(String(1024), nullable=False)
    file_key = Column(String(1024), nullable=False)
    file_name = Column(String(255), nullable=False)
    upload_date = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    module = relationship("EContentModule", back_populates="files")
