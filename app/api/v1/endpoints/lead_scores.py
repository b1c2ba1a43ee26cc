"""
Lead scoring endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import structlog

from app.core.database import get_db, get_session_factory
from app.schemas.scoring import (
    ComputeLeadScoreRequest,
    ComputeLeadScoreResponse,
    LeadScoreResponse,
)
from app.services.lead_scoring_service import LeadScoringService
from app.services.lead_store import LeadStore
from app.services.scoring import LeadTemperature

router = APIRouter()
logger = structlog.get_logger(__name__)


def get_scoring_service(session_factory=Depends(get_session_factory)) -> LeadScoringService:
    """Scoring service bound to the configured session factory"""
    return LeadScoringService(session_factory=session_factory)


@router.options("/compute")
async def compute_lead_scores_preflight():
    """CORS preflight"""
    return Response(status_code=200)


@router.post(
    "/compute",
    response_model=ComputeLeadScoreResponse,
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": ComputeLeadScoreRequest.model_json_schema()}}
        }
    },
)
async def compute_lead_scores(
    request: Request,
    service: LeadScoringService = Depends(get_scoring_service)
):
    """Score one session (session_id) or every known session (compute_all)"""
    try:
        # Body is parsed here so a malformed request fails like any other run error
        body = await request.body()
        payload = ComputeLeadScoreRequest.model_validate_json(body) if body.strip() else ComputeLeadScoreRequest()

        logger.info("Lead scoring requested",
                   session_id=payload.session_id,
                   compute_all=payload.compute_all)
        
        return await service.run(session_id=payload.session_id, compute_all=payload.compute_all)
        
    except Exception as e:
        logger.error("Lead scoring run failed", err=str(e))
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.get("/", response_model=List[LeadScoreResponse])
async def get_lead_scores(
    temperature: Optional[LeadTemperature] = Query(None, description="Only snapshots in this bucket"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    """Get score snapshots, highest score first"""
    store = LeadStore(db)
    return store.list_snapshots(
        temperature=temperature.value if temperature else None,
        skip=skip,
        limit=limit,
    )


@router.get("/{session_id}", response_model=LeadScoreResponse)
async def get_lead_score(
    session_id: str,
    db: Session = Depends(get_db)
):
    """Get the current score snapshot for a session"""
    snapshot = LeadStore(db).get_snapshot(session_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Lead score not found")
    return snapshot
