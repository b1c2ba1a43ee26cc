"""
Demo session and engagement event Pydantic schemas
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, Any
from datetime import datetime


class SessionBase(BaseModel):
    """Base session schema"""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    company_name: Optional[str] = None
    industry: Optional[str] = None
    employee_count: Optional[str] = None
    job_title: Optional[str] = None


class SessionCreate(SessionBase):
    """Session creation schema"""
    id: str = Field(..., min_length=1, max_length=64)


class SessionUpdate(SessionBase):
    """Session profile update schema; unset fields are left unchanged"""
    pass


class SessionResponse(SessionBase):
    """Session response schema"""
    id: str
    email: Optional[str] = None  # validated on input only
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True


class EngagementEventCreate(BaseModel):
    """Engagement event creation schema"""
    event_type: str = Field(..., min_length=1, max_length=50)
    experience_id: Optional[str] = None
    chapter_id: Optional[str] = None
    video_watch_percentage: Optional[float] = Field(None, ge=0, le=100)
    time_spent_seconds: Optional[float] = Field(0, ge=0)
    event_metadata: Optional[Dict[str, Any]] = None


class EngagementEventResponse(EngagementEventCreate):
    """Engagement event response schema"""
    id: int
    session_id: str
    created_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True
