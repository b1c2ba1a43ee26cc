"""
Engagement event database model
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class EngagementEvent(Base):
    """Engagement event model (append-only)"""
    __tablename__ = "engagement_events"
    
    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(64), ForeignKey("demo_sessions.id"), nullable=False, index=True)
    experience_id = Column(String(64), index=True)
    chapter_id = Column(String(64))
    event_type = Column(String(50), nullable=False)  # 'video_progress', 'cta_click', etc.
    video_watch_percentage = Column(Float)
    time_spent_seconds = Column(Float, default=0)
    event_metadata = Column(JSON)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    # Relationships
    session = relationship("DemoSession", back_populates="events")
