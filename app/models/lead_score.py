"""
Lead score snapshot database model
"""

from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from app.core.database import Base


class LeadScore(Base):
    """Latest computed score for a session; replaced on every run"""
    __tablename__ = "lead_scores"
    
    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(64), ForeignKey("demo_sessions.id"), unique=True, nullable=False, index=True)
    total_watch_time = Column(Float, default=0)
    chapters_completed = Column(Integer, default=0)
    features_explored = Column(Integer, default=0)
    cta_clicks = Column(Integer, default=0)
    engagement_score = Column(Integer, nullable=False, default=0)
    lead_temperature = Column(String(20), nullable=False, default="cold")  # 'cold', 'warm', 'hot', 'qualified'
    recommended_follow_up = Column(Text)
    score_breakdown = Column(JSON)
    last_computed_at = Column(DateTime(timezone=True), nullable=False)
    
    # Relationships
    session = relationship("DemoSession", back_populates="lead_score")
