"""
Experience chapter database model
"""

from sqlalchemy import Column, Integer, String, Boolean
from app.core.database import Base


class ExperienceChapter(Base):
    """Chapter of a demo experience"""
    __tablename__ = "experience_chapters"
    
    id = Column(String(64), primary_key=True)
    experience_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    display_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
