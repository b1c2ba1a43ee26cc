"""
Lead scoring Pydantic schemas
"""

from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from datetime import datetime


class ComputeLeadScoreRequest(BaseModel):
    """Batch scoring request: one session, or all of them"""
    session_id: Optional[str] = None
    compute_all: bool = False


class LeadScoreResult(BaseModel):
    """Per-session entry of a scoring run summary"""
    session_id: str
    email: Optional[str] = None
    engagement_score: int
    lead_temperature: str


class ComputeLeadScoreResponse(BaseModel):
    """Scoring run summary"""
    success: bool
    processed: int
    results: List[LeadScoreResult]


class LeadScoreResponse(BaseModel):
    """Persisted score snapshot"""
    session_id: str
    total_watch_time: float
    chapters_completed: int
    features_explored: int
    cta_clicks: int
    engagement_score: int
    lead_temperature: str
    recommended_follow_up: Optional[str] = None
    score_breakdown: Optional[Dict[str, Any]] = None
    last_computed_at: datetime
    
    class Config:
        from_attributes = True
