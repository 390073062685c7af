from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import field_validator
from sqlmodel import Session, select

from matchboard.database import get_session
from matchboard.models.bracket import EventBracket
from matchboard.models.event import Event
from matchboard.models.league import League
from matchboard.models.match import Match
from matchboard.schemas import CamelModel, coerce_id

router = APIRouter()

EVENT_STATUSES = ("upcoming", "live", "completed")


def _validate_categories(v):
    if v is None:
        return v
    cleaned = []
    for i, category in enumerate(v):
        if not isinstance(category, dict):
            raise ValueError(f"category {i + 1} must be an object")
        cat_id = coerce_id(category.get("id"))
        if not cat_id:
            raise ValueError(f"category {i + 1} requires an id")
        cleaned.append({**category, "id": cat_id})
    return cleaned


class EventCreate(CamelModel):
    name: str
    sport: Optional[str] = None
    status: str = "upcoming"
    categories: List[Dict[str, Any]] = []

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in EVENT_STATUSES:
            raise ValueError(f"status must be one of {', '.join(EVENT_STATUSES)}")
        return v

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v):
        return _validate_categories(v)


class EventUpdate(CamelModel):
    name: Optional[str] = None
    sport: Optional[str] = None
    status: Optional[str] = None
    categories: Optional[List[Dict[str, Any]]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and (not v or not v.strip()):
            raise ValueError("name cannot be empty")
        return v.strip() if v else v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in EVENT_STATUSES:
            raise ValueError(f"status must be one of {', '.join(EVENT_STATUSES)}")
        return v

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v):
        return _validate_categories(v)


class EventResponse(CamelModel):
    id: int
    name: str
    sport: Optional[str] = None
    status: str
    categories: List[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime


@router.get("/events", response_model=List[EventResponse])
def list_events(session: Session = Depends(get_session)):
    """Get all events"""
    return session.exec(select(Event).order_by(Event.id)).all()


@router.post("/events", response_model=EventResponse, status_code=201)
def create_event(event_data: EventCreate, session: Session = Depends(get_session)):
    """Create a new event"""
    existing = session.exec(select(Event).where(Event.name == event_data.name)).first()
    if existing:
        raise HTTPException(status_code=409, detail=f"Event with name '{event_data.name}' already exists")

    event = Event(**event_data.model_dump())
    session.add(event)
    session.commit()
    session.refresh(event)

    return event


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(event_id: int, session: Session = Depends(get_session)):
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.put("/events/{event_id}", response_model=EventResponse)
def update_event(event_id: int, event_data: EventUpdate, session: Session = Depends(get_session)):
    """Update an event"""
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    update_data = event_data.model_dump(exclude_unset=True)

    if "name" in update_data:
        existing = session.exec(
            select(Event).where(Event.name == update_data["name"], Event.id != event_id)
        ).first()
        if existing:
            raise HTTPException(status_code=409, detail=f"Event with name '{update_data['name']}' already exists")

    for field, value in update_data.items():
        setattr(event, field, value)
    event.updated_at = datetime.utcnow()

    session.add(event)
    session.commit()
    session.refresh(event)

    return event


@router.delete("/events/{event_id}", status_code=204)
def delete_event(event_id: int, session: Session = Depends(get_session)):
    """Delete an event with its matches, leagues and brackets"""
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    for model in (Match, League, EventBracket):
        for row in session.exec(select(model).where(model.event_id == event_id)).all():
            session.delete(row)
    session.flush()
    session.delete(event)
    session.commit()

    return None
