"""
Semester routes
"""
from fastapi import APIRouter

from lms.api.dependencies import AdminUser, CurrentUser, DBSession
from lms.models.database_service import create_semester, list_semesters, transaction
from lms.models.schemas import SemesterCreate
from lms.services.course_content import semester_to_dict

router = APIRouter(prefix="/api/semesters", tags=["Semesters"])


@router.post("", status_code=201)
async def create_new_semester(payload: SemesterCreate, current_user: AdminUser, db: DBSession):
    """Create a semester; the end date must come after the start date"""
    with transaction(db):
        semester = create_semester(db, payload.name, payload.start_date, payload.end_date)
    return semester_to_dict(semester)


@router.get("")
async def get_semesters(current_user: CurrentUser, db: DBSession):
    return [semester_to_dict(s) for s in list_semesters(db)]
