"""
Pydantic request/response models for the LMS API
Define schemas for accounts, courses and their sections, lectures, grading, semesters, events
"""
import re
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

WEEKDAYS = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
HTTP_URL_RE = re.compile(r"^https?://.+", re.IGNORECASE)


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if '@' not in v:
        raise ValueError('Invalid email format')
    return v


def _validate_http_url(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not HTTP_URL_RE.match(v):
        raise ValueError('Link must be a valid http(s) URL')
    return v


# ============= AUTH MODELS =============

class Token(BaseModel):
    access_token: str
    token_type: str


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return v.strip().lower()


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    role: Literal["teacher", "student"] = "student"
    teacher_email: Optional[str] = None
    program: Optional[str] = None
    semester: Optional[str] = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _normalize_email(v)

    @field_validator('teacher_email')
    @classmethod
    def validate_teacher_email(cls, v):
        return _normalize_email(v) if v else None

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError('Password must be at least 6 characters long')
        return v

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if len(v.strip()) < 2:
            raise ValueError('Name must be at least 2 characters long')
        return v.strip()


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    teacher_id: Optional[int] = None
    student_id: Optional[int] = None


class ImportedUserRow(BaseModel):
    """One row of an admin bulk-import sheet"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    email: str
    password: str
    role: Literal["teacher", "student"]
    teacher_email: Optional[str] = Field(default=None, alias="teacherEmail")

    @field_validator('role', mode='before')
    @classmethod
    def normalize_role(cls, v):
        return str(v).strip().lower()

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _normalize_email(v)

    @field_validator('teacher_email')
    @classmethod
    def validate_teacher_email(cls, v):
        return _normalize_email(v) if v else None

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError('Password must be at least 6 characters long')
        return v

    @model_validator(mode='after')
    def student_needs_teacher(self):
        if self.role == "student" and not self.teacher_email:
            raise ValueError('teacherEmail is required for students')
        return self


class AssignStudentRequest(BaseModel):
    teacher_id: Optional[int] = Field(default=None, description="Required when an admin assigns")


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    program: Optional[str] = None
    semester: Optional[str] = None


# ============= COURSE SECTION MODELS =============

class ClassSlot(BaseModel):
    day: WEEKDAYS
    time: str


class CourseScheduleIn(BaseModel):
    class_start_date: datetime
    class_end_date: datetime
    mid_semester_exam_date: datetime
    end_semester_exam_date: datetime
    class_days_and_times: List[ClassSlot] = Field(default_factory=list)


class SyllabusModule(BaseModel):
    module_number: int = Field(ge=1)
    module_title: str
    topics: List[str] = Field(default_factory=list)


class WeekPlan(BaseModel):
    week_number: int = Field(ge=1)
    topics: List[str] = Field(default_factory=list)


class CreditPointsIn(BaseModel):
    lecture: int = Field(default=0, ge=0)
    tutorial: int = Field(default=0, ge=0)
    practical: int = Field(default=0, ge=0)
    project: int = Field(default=0, ge=0)


class CourseLectureIn(BaseModel):
    """Lecture supplied inline with a new course (no video upload)"""
    title: str
    content: Optional[str] = None
    video_url: Optional[str] = None
    review_deadline: Optional[datetime] = None


class CourseSections(BaseModel):
    learning_outcomes: Optional[List[str]] = None
    course_schedule: Optional[CourseScheduleIn] = None
    syllabus: Optional[List[SyllabusModule]] = None
    weekly_plan: Optional[List[WeekPlan]] = None
    credit_points: Optional[CreditPointsIn] = None
    attendance: Optional[Dict[str, List[int]]] = None


class CourseCreate(CourseSections):
    title: str = Field(min_length=1)
    about_course: str = Field(min_length=1)
    semester_id: int
    lectures: List[CourseLectureIn] = Field(default_factory=list)


class CourseUpdate(CourseSections):
    title: Optional[str] = None
    about_course: Optional[str] = None
    semester_id: Optional[int] = None


class AttendanceUpdate(BaseModel):
    sessions: Dict[str, List[int]]


# ============= LECTURE / ASSIGNMENT MODELS =============

class LectureReviewRequest(BaseModel):
    is_reviewed: Optional[bool] = None
    review_deadline: Optional[datetime] = None


class GradeRequest(BaseModel):
    grade: float
    feedback: Optional[str] = None


# ============= SEMESTER / EVENT MODELS =============

class SemesterCreate(BaseModel):
    name: str = Field(min_length=1)
    start_date: datetime
    end_date: datetime


class EventCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    date: datetime
    time: str = Field(min_length=1)
    image: str = Field(min_length=1)
    location: str = Field(min_length=1)
    link: str

    @field_validator('link')
    @classmethod
    def validate_link(cls, v):
        return _validate_http_url(v)


class EventUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    time: Optional[str] = None
    image: Optional[str] = None
    location: Optional[str] = None
    link: Optional[str] = None

    @field_validator('link')
    @classmethod
    def validate_link(cls, v):
        return _validate_http_url(v)
