"""
Lead store
Database access for the scoring pipeline: sessions, events, chapters and score snapshots
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session
import structlog

from app.models.chapter import ExperienceChapter
from app.models.engagement_event import EngagementEvent
from app.models.lead_score import LeadScore
from app.models.session import DemoSession

logger = structlog.get_logger(__name__)


class SessionNotFoundError(LookupError):
    """Raised when a session id has no profile row"""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class ScoringCancelledError(RuntimeError):
    """Raised when a session's scoring was abandoned before its snapshot was committed"""

    def __init__(self, session_id: str):
        super().__init__(f"Scoring cancelled: {session_id}")
        self.session_id = session_id


class CommitGuard:
    """Lets a timed-out caller veto a pending snapshot commit.

    Cancelling and committing are serialized, so a session is either
    cancelled with nothing written or committed and not cancellable.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._cancelled = False
        self._committed = False

    def cancel(self) -> bool:
        """Cancel unless the commit already happened; True when cancelled"""
        with self._lock:
            if not self._committed:
                self._cancelled = True
            return self._cancelled

    def check(self, session_id: str):
        if self._cancelled:
            raise ScoringCancelledError(session_id)

    @contextmanager
    def committing(self, session_id: str):
        with self._lock:
            self.check(session_id)
            yield
            self._committed = True


class LeadStore:
    """Reads engagement data and writes score snapshots through one SQLAlchemy session"""

    def __init__(self, db: Session, guard: Optional[CommitGuard] = None):
        self.db = db
        self.guard = guard or CommitGuard()
        self.logger = logger

    def list_session_ids(self) -> List[str]:
        rows = self.db.query(DemoSession.id).order_by(DemoSession.created_at, DemoSession.id).all()
        return [row.id for row in rows]

    def get_session(self, session_id: str) -> DemoSession:
        session = self.db.get(DemoSession, session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def get_events(self, session_id: str) -> List[EngagementEvent]:
        return (
            self.db.query(EngagementEvent)
            .filter(EngagementEvent.session_id == session_id)
            .order_by(EngagementEvent.created_at, EngagementEvent.id)
            .all()
        )

    def count_active_chapters(self, experience_id: str) -> int:
        count = (
            self.db.query(func.count(ExperienceChapter.id))
            .filter(ExperienceChapter.experience_id == experience_id)
            .filter(ExperienceChapter.is_active.is_(True))
            .scalar()
        )
        return count or 0

    def total_chapters_for(self, events: List[EngagementEvent]) -> int:
        """Sum active chapter counts over the distinct experiences the events reference"""
        experience_ids = {event.experience_id for event in events if event.experience_id}
        return sum(self.count_active_chapters(experience_id) for experience_id in sorted(experience_ids))

    def upsert_snapshot(self, session_id: str, values: Dict[str, Any], computed_at: datetime) -> LeadScore:
        """Replace the session's snapshot wholesale, creating it on first run"""
        snapshot = self.db.query(LeadScore).filter(LeadScore.session_id == session_id).one_or_none()
        if snapshot is None:
            snapshot = LeadScore(session_id=session_id)
            self.db.add(snapshot)

        snapshot.total_watch_time = values["total_watch_time"]
        snapshot.chapters_completed = values["chapters_completed"]
        snapshot.features_explored = values["features_explored"]
        snapshot.cta_clicks = values["cta_clicks"]
        snapshot.engagement_score = values["engagement_score"]
        snapshot.lead_temperature = values["lead_temperature"]
        snapshot.recommended_follow_up = values["recommended_follow_up"]
        snapshot.score_breakdown = values["score_breakdown"]
        snapshot.last_computed_at = computed_at

        try:
            with self.guard.committing(session_id):
                self.db.commit()
        except ScoringCancelledError:
            self.db.rollback()
            raise
        self.db.refresh(snapshot)
        return snapshot

    def get_snapshot(self, session_id: str) -> Optional[LeadScore]:
        return self.db.query(LeadScore).filter(LeadScore.session_id == session_id).one_or_none()

    def list_snapshots(
        self,
        temperature: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[LeadScore]:
        query = self.db.query(LeadScore)
        if temperature:
            query = query.filter(LeadScore.lead_temperature == temperature)
        return (
            query.order_by(LeadScore.engagement_score.desc(), LeadScore.session_id)
            .offset(skip)
            .limit(limit)
            .all()
        )
