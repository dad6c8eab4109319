"""
Campus event routes
"""
from typing import Dict

from fastapi import APIRouter

from lms.api.dependencies import AdminUser, CurrentUser, DBSession
from lms.models.database_models import Event
from lms.models.database_service import create_event, get_event, list_events, transaction, update_event
from lms.models.schemas import EventCreate, EventUpdate
from lms.utils.timeutils import as_utc

router = APIRouter(prefix="/api/events", tags=["Events"])


def event_to_dict(event: Event) -> Dict:
    return {
        "id": event.id,
        "name": event.name,
        "description": event.description,
        "date": as_utc(event.date),
        "time": event.time,
        "image": event.image,
        "location": event.location,
        "link": event.link,
    }


@router.post("", status_code=201)
async def create_new_event(payload: EventCreate, current_user: AdminUser, db: DBSession):
    with transaction(db):
        event = create_event(db, **payload.model_dump())
    return event_to_dict(event)


@router.get("")
async def get_events(current_user: CurrentUser, db: DBSession):
    """All events, soonest first"""
    return [event_to_dict(e) for e in list_events(db)]


@router.get("/{event_id}")
async def get_event_by_id(event_id: int, current_user: CurrentUser, db: DBSession):
    return event_to_dict(get_event(db, event_id))


@router.put("/{event_id}")
async def update_event_endpoint(event_id: int, payload: EventUpdate, current_user: AdminUser, db: DBSession):
    event = get_event(db, event_id)
    with transaction(db):
        update_event(db, event, **payload.model_dump(exclude_unset=True))
    return event_to_dict(event)


@router.delete("/{event_id}")
async def delete_event_endpoint(event_id: int, current_user: AdminUser, db: DBSession):
    event = get_event(db, event_id)
    with transaction(db):
        db.delete(event)
    return {"message": "Event deleted successfully"}
