"""
Lead scoring background tasks
"""

import asyncio
from typing import Optional

from app.core.celery_app import celery_app
from app.services.lead_scoring_service import LeadScoringService
import structlog

logger = structlog.get_logger(__name__)


@celery_app.task(bind=True)
def compute_lead_scores(self, session_id: Optional[str] = None, compute_all: bool = True):
    """Score one session, or every session, in background"""
    try:
        logger.info("Starting lead scoring", session_id=session_id, compute_all=compute_all)
        
        service = LeadScoringService()
        result = asyncio.run(service.run(session_id=session_id, compute_all=compute_all))
        
        logger.info("Lead scoring completed", processed=result["processed"], success=result["success"])
        return result
        
    except Exception as e:
        logger.error("Lead scoring failed", session_id=session_id, error=str(e))
        raise self.retry(exc=e, countdown=60, max_retries=3)
