"""
Lead scoring service
Batch runner: fetch -> extract metrics -> score -> recommend -> upsert, per session
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session
import structlog

from app.core.config import settings
from app.core.database import SessionLocal
from app.services.lead_store import CommitGuard, LeadStore
from app.services.metrics import extract_metrics
from app.services.recommendations import recommend_follow_up
from app.services.scoring import (
    build_breakdown,
    classify_temperature,
    compute_engagement_score,
    compute_sub_scores,
)

logger = structlog.get_logger(__name__)


class LeadScoringService:
    """Scores sessions and persists one snapshot per session.

    Each session is scored on a worker thread with its own database
    session and a timeout. Failures while scoring a session are logged and
    that session is left out of the summary; only a failure to enumerate
    the candidate sessions aborts the run. A timed-out session writes no
    snapshot, and its concurrency slot stays taken until its worker thread
    has returned.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        timeout: Optional[float] = None,
        concurrency: Optional[int] = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.timeout = settings.SESSION_TIMEOUT_SECONDS if timeout is None else timeout
        self.concurrency = max(1, concurrency or settings.SCORING_CONCURRENCY)
        self.logger = logger

    async def run(self, session_id: Optional[str] = None, compute_all: bool = False) -> Dict[str, Any]:
        """Score one session or all of them and return the run summary"""
        session_ids = await self._candidate_session_ids(session_id, compute_all)
        self.logger.info("Starting lead scoring run", candidates=len(session_ids), compute_all=compute_all)

        semaphore = asyncio.Semaphore(self.concurrency)

        async def guarded(candidate_id: str) -> Optional[Dict[str, Any]]:
            async with semaphore:
                return await self._score_with_timeout(candidate_id)

        outcomes = await asyncio.gather(*(guarded(candidate_id) for candidate_id in session_ids))
        results = [outcome for outcome in outcomes if outcome is not None]

        self.logger.info(
            "Lead scoring run completed",
            processed=len(results),
            skipped=len(session_ids) - len(results),
        )
        return {
            "success": True,
            "processed": len(results),
            "results": results,
        }

    async def _candidate_session_ids(self, session_id: Optional[str], compute_all: bool) -> List[str]:
        if session_id:
            return [session_id]
        if compute_all:
            return await asyncio.to_thread(self._list_session_ids)
        raise ValueError("Either session_id or compute_all must be provided")

    def _list_session_ids(self) -> List[str]:
        with self.session_factory() as db:
            return LeadStore(db).list_session_ids()

    async def _score_with_timeout(self, session_id: str) -> Optional[Dict[str, Any]]:
        guard = CommitGuard()
        worker = asyncio.ensure_future(asyncio.to_thread(self.score_session, session_id, guard))
        try:
            try:
                return await asyncio.wait_for(asyncio.shield(worker), timeout=self.timeout)
            except asyncio.TimeoutError:
                if not guard.cancel():
                    # snapshot committed right at the deadline
                    return await worker
                self.logger.error("Lead scoring timed out", session_id=session_id, timeout=self.timeout)
                # hold the concurrency slot until the worker thread has stopped
                await asyncio.gather(worker, return_exceptions=True)
        except Exception as e:
            self.logger.error("Lead scoring failed", session_id=session_id, err=str(e))
        return None

    def score_session(self, session_id: str, guard: Optional[CommitGuard] = None) -> Dict[str, Any]:
        """Score a single session synchronously and upsert its snapshot.

        A cancelled guard stops the work at the next step and keeps the
        snapshot from being committed.
        """
        with self.session_factory() as db:
            store = LeadStore(db, guard=guard)

            session = store.get_session(session_id)
            email = session.email
            events = store.get_events(session_id)
            store.guard.check(session_id)
            total_chapters = store.total_chapters_for(events)
            store.guard.check(session_id)

            metrics = extract_metrics(events, session)
            sub_scores = compute_sub_scores(metrics, total_chapters)
            score = compute_engagement_score(sub_scores)
            temperature = classify_temperature(score)
            follow_up = recommend_follow_up(score, temperature, session)

            store.upsert_snapshot(
                session_id,
                {
                    "total_watch_time": metrics.total_watch_time,
                    "chapters_completed": metrics.completed_chapters,
                    "features_explored": metrics.feature_count,
                    "cta_clicks": metrics.cta_count,
                    "engagement_score": score,
                    "lead_temperature": temperature.value,
                    "recommended_follow_up": follow_up,
                    "score_breakdown": build_breakdown(sub_scores, metrics),
                },
                computed_at=datetime.now(timezone.utc),
            )

            self.logger.info(
                "Session scored",
                session_id=session_id,
                engagement_score=score,
                lead_temperature=temperature.value,
            )
            return {
                "session_id": session_id,
                "email": email,
                "engagement_score": score,
                "lead_temperature": temperature.value,
            }
