"""
Demo session and engagement event endpoints
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import structlog

from app.core.database import get_db
from app.models.engagement_event import EngagementEvent
from app.models.session import DemoSession
from app.schemas.session import (
    EngagementEventCreate,
    EngagementEventResponse,
    SessionCreate,
    SessionResponse,
    SessionUpdate,
)

router = APIRouter()
logger = structlog.get_logger(__name__)


def _get_session_or_404(db: Session, session_id: str) -> DemoSession:
    session = db.get(DemoSession, session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("/", response_model=SessionResponse, status_code=201)
async def create_session(
    session: SessionCreate,
    db: Session = Depends(get_db)
):
    """Register a tracked session"""
    if db.get(DemoSession, session.id) is not None:
        raise HTTPException(status_code=409, detail="Session already exists")
    
    db_session = DemoSession(**session.model_dump())
    db.add(db_session)
    db.commit()
    db.refresh(db_session)
    
    logger.info("Session created", session_id=db_session.id)
    return db_session


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    db: Session = Depends(get_db)
):
    """Get session by ID"""
    return _get_session_or_404(db, session_id)


@router.put("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: str,
    session: SessionUpdate,
    db: Session = Depends(get_db)
):
    """Fill in profile fields as the visitor reveals them"""
    db_session = _get_session_or_404(db, session_id)
    
    for field, value in session.model_dump(exclude_unset=True).items():
        setattr(db_session, field, value)
    db.commit()
    db.refresh(db_session)
    
    logger.info("Session profile updated", session_id=session_id)
    return db_session


@router.post("/{session_id}/events", response_model=EngagementEventResponse, status_code=201)
async def record_event(
    session_id: str,
    event: EngagementEventCreate,
    db: Session = Depends(get_db)
):
    """Append an engagement event to a session"""
    _get_session_or_404(db, session_id)
    
    db_event = EngagementEvent(session_id=session_id, **event.model_dump())
    db.add(db_event)
    db.commit()
    db.refresh(db_event)
    
    logger.info("Engagement event recorded", session_id=session_id, event_type=db_event.event_type)
    return db_event
