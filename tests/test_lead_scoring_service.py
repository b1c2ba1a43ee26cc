"""
Tests for the batch runner (services/lead_scoring_service.py) against an in-memory database.
"""
import asyncio
import threading
import time
from datetime import datetime, timezone

import pytest
from app.models.lead_score import LeadScore
from app.services.lead_scoring_service import LeadScoringService
from app.services.lead_store import (
    CommitGuard,
    LeadStore,
    ScoringCancelledError,
    SessionNotFoundError,
)

from conftest import add_chapters, add_event, add_session


def seed_engaged_session(db, session_id="s1"):
    """Profile 60, video 80, 3/5 chapters, 2 CTAs, 450s -> 68 (hot)."""
    add_session(db, session_id, email="ana@example.com", full_name="Ana Lima", company_name="Acme")
    add_chapters(db, "exp-1", 5, inactive=1)
    add_event(db, session_id, "video_progress", experience_id="exp-1",
              video_watch_percentage=80, time_spent_seconds=100)
    add_event(db, session_id, "video_complete", experience_id="exp-1",
              video_watch_percentage=80, time_spent_seconds=200)
    for chapter in ("exp-1-ch0", "exp-1-ch1", "exp-1-ch2"):
        add_event(db, session_id, "chapter_complete", experience_id="exp-1",
                  chapter_id=chapter, time_spent_seconds=50)
    add_event(db, session_id, "cta_click", experience_id="exp-1")
    add_event(db, session_id, "cta_click", experience_id="exp-1")


def run(service, **kwargs):
    return asyncio.run(service.run(**kwargs))


def snapshot_fields(snapshot):
    return {
        "total_watch_time": snapshot.total_watch_time,
        "chapters_completed": snapshot.chapters_completed,
        "features_explored": snapshot.features_explored,
        "cta_clicks": snapshot.cta_clicks,
        "engagement_score": snapshot.engagement_score,
        "lead_temperature": snapshot.lead_temperature,
        "recommended_follow_up": snapshot.recommended_follow_up,
        "score_breakdown": snapshot.score_breakdown,
    }


class TestScoreSession:
    def test_single_session_summary(self, db, session_factory):
        seed_engaged_session(db)
        result = run(LeadScoringService(session_factory), session_id="s1")
        assert result == {
            "success": True,
            "processed": 1,
            "results": [{
                "session_id": "s1",
                "email": "ana@example.com",
                "engagement_score": 68,
                "lead_temperature": "hot",
            }],
        }

    def test_snapshot_persisted(self, db, session_factory):
        seed_engaged_session(db)
        run(LeadScoringService(session_factory), session_id="s1")

        with session_factory() as check:
            snapshot = LeadStore(check).get_snapshot("s1")
            assert snapshot.total_watch_time == 450
            assert snapshot.chapters_completed == 3
            assert snapshot.cta_clicks == 2
            assert snapshot.features_explored == 0
            assert "ana@example.com" in snapshot.recommended_follow_up
            assert snapshot.last_computed_at is not None
            assert snapshot.score_breakdown == {
                "video_engagement": 80,
                "chapter_completion": 60,
                "cta_interactions": 50,
                "time_investment": 100,
                "profile_completeness": 60,
                "total_events": 7,
            }

    def test_empty_session_is_cold(self, db, session_factory):
        add_session(db, "empty")
        result = run(LeadScoringService(session_factory), session_id="empty")
        assert result["results"] == [{
            "session_id": "empty",
            "email": None,
            "engagement_score": 0,
            "lead_temperature": "cold",
        }]

    def test_chapter_counts_sum_across_experiences(self, db, session_factory):
        add_session(db, "multi")
        add_chapters(db, "exp-a", 2)
        add_chapters(db, "exp-b", 2)
        add_event(db, "multi", "chapter_complete", experience_id="exp-a", chapter_id="exp-a-ch0")
        add_event(db, "multi", "chapter_complete", experience_id="exp-b", chapter_id="exp-b-ch0")
        run(LeadScoringService(session_factory), session_id="multi")

        with session_factory() as check:
            snapshot = LeadStore(check).get_snapshot("multi")
            assert snapshot.score_breakdown["chapter_completion"] == 50

    def test_unknown_session_is_skipped(self, session_factory):
        result = run(LeadScoringService(session_factory), session_id="missing")
        assert result == {"success": True, "processed": 0, "results": []}

    def test_store_raises_for_unknown_session(self, db):
        with pytest.raises(SessionNotFoundError):
            LeadStore(db).get_session("missing")


class TestUpsert:
    def test_rerun_is_idempotent(self, db, session_factory):
        seed_engaged_session(db)
        service = LeadScoringService(session_factory)
        run(service, session_id="s1")
        with session_factory() as check:
            first = snapshot_fields(LeadStore(check).get_snapshot("s1"))

        run(service, session_id="s1")
        with session_factory() as check:
            assert snapshot_fields(LeadStore(check).get_snapshot("s1")) == first
            assert check.query(LeadScore).count() == 1

    def test_rerun_replaces_snapshot(self, db, session_factory):
        add_session(db, "s1")
        service = LeadScoringService(session_factory)
        run(service, session_id="s1")

        for _ in range(4):
            add_event(db, "s1", "book_demo", time_spent_seconds=75)
        result = run(service, session_id="s1")

        # cta 100 * 0.20 + time 100 * 0.10
        assert result["results"][0]["engagement_score"] == 30
        with session_factory() as check:
            snapshot = LeadStore(check).get_snapshot("s1")
            assert snapshot.cta_clicks == 4
            assert snapshot.lead_temperature == "warm"
            assert check.query(LeadScore).count() == 1


class TestBatch:
    def test_compute_all(self, db, session_factory):
        seed_engaged_session(db, "s1")
        add_session(db, "s2")
        result = run(LeadScoringService(session_factory), compute_all=True)
        assert result["processed"] == 2
        assert {r["session_id"] for r in result["results"]} == {"s1", "s2"}

    def test_partial_failure_skips_session(self, db, session_factory, monkeypatch):
        for session_id in ("s1", "s2", "s3"):
            add_session(db, session_id, email=f"{session_id}@example.com")

        original = LeadStore.get_events

        def flaky_get_events(self, session_id):
            if session_id == "s2":
                raise RuntimeError("event store unavailable")
            return original(self, session_id)

        monkeypatch.setattr(LeadStore, "get_events", flaky_get_events)
        result = run(LeadScoringService(session_factory), compute_all=True)

        assert result["success"] is True
        assert result["processed"] == 2
        assert sorted(r["session_id"] for r in result["results"]) == ["s1", "s3"]
        with session_factory() as check:
            assert LeadStore(check).get_snapshot("s2") is None

    def test_write_failure_skips_session(self, db, session_factory, monkeypatch):
        add_session(db, "s1")

        def failing_upsert(self, session_id, values, computed_at):
            raise RuntimeError("write rejected")

        monkeypatch.setattr(LeadStore, "upsert_snapshot", failing_upsert)
        result = run(LeadScoringService(session_factory), session_id="s1")
        assert result["processed"] == 0

    def test_enumeration_failure_is_fatal(self, session_factory, monkeypatch):
        def broken(self):
            raise RuntimeError("database unreachable")

        monkeypatch.setattr(LeadStore, "list_session_ids", broken)
        with pytest.raises(RuntimeError, match="database unreachable"):
            run(LeadScoringService(session_factory), compute_all=True)

    def test_requires_session_or_compute_all(self, session_factory):
        with pytest.raises(ValueError):
            run(LeadScoringService(session_factory))


class FakeScoringService(LeadScoringService):
    """Skips the database; 'slow' sessions sleep past the timeout."""

    def _list_session_ids(self):
        return ["a", "slow", "b"]

    def score_session(self, session_id, guard=None):
        if session_id == "slow":
            time.sleep(0.3)
        return {"session_id": session_id, "email": None, "engagement_score": 0, "lead_temperature": "cold"}


class TestTimeoutAndConcurrency:
    def test_timeout_skips_session(self):
        result = run(FakeScoringService(timeout=0.05), compute_all=True)
        assert result["processed"] == 2
        assert [r["session_id"] for r in result["results"]] == ["a", "b"]

    def test_concurrent_run_gives_same_results(self):
        sequential = run(FakeScoringService(timeout=1, concurrency=1), compute_all=True)
        concurrent = run(FakeScoringService(timeout=1, concurrency=3), compute_all=True)
        assert sorted(r["session_id"] for r in concurrent["results"]) == \
            sorted(r["session_id"] for r in sequential["results"])

    def test_timed_out_session_writes_no_snapshot(self, db, session_factory, monkeypatch):
        add_session(db, "slow", email="slow@example.com")
        add_event(db, "slow", "book_demo")
        original = LeadStore.get_events

        def slow_get_events(self, session_id):
            time.sleep(0.3)
            return original(self, session_id)

        monkeypatch.setattr(LeadStore, "get_events", slow_get_events)
        result = run(LeadScoringService(session_factory, timeout=0.05), session_id="slow")

        assert result == {"success": True, "processed": 0, "results": []}
        # run() returns only after the worker thread has stopped
        with session_factory() as check:
            assert LeadStore(check).get_snapshot("slow") is None

    def test_timed_out_workers_do_not_overlap(self):
        class CountingService(FakeScoringService):
            def __init__(self, **kwargs):
                super().__init__(**kwargs)
                self.lock = threading.Lock()
                self.active = 0
                self.peak = 0

            def _list_session_ids(self):
                return ["s1", "s2", "s3", "s4"]

            def score_session(self, session_id, guard=None):
                with self.lock:
                    self.active += 1
                    self.peak = max(self.peak, self.active)
                time.sleep(0.2)
                with self.lock:
                    self.active -= 1
                return super().score_session(session_id, guard)

        sequential = CountingService(timeout=0.05, concurrency=1)
        result = run(sequential, compute_all=True)
        assert result["processed"] == 0
        assert sequential.peak == 1

        paired = CountingService(timeout=0.05, concurrency=2)
        run(paired, compute_all=True)
        assert paired.peak <= 2


class TestCommitGuard:
    def test_cancel_before_commit_blocks_it(self):
        guard = CommitGuard()
        assert guard.cancel() is True
        with pytest.raises(ScoringCancelledError):
            with guard.committing("s1"):
                pass

    def test_cancel_after_commit_is_refused(self):
        guard = CommitGuard()
        with guard.committing("s1"):
            pass
        assert guard.cancel() is False
        guard.check("s1")

    def test_cancelled_upsert_rolls_back(self, db, session_factory):
        add_session(db, "s1")
        guard = CommitGuard()
        guard.cancel()
        with session_factory() as work:
            with pytest.raises(ScoringCancelledError):
                LeadStore(work, guard=guard).upsert_snapshot("s1", {
                    "total_watch_time": 0,
                    "chapters_completed": 0,
                    "features_explored": 0,
                    "cta_clicks": 0,
                    "engagement_score": 0,
                    "lead_temperature": "cold",
                    "recommended_follow_up": "n/a",
                    "score_breakdown": {},
                }, computed_at=datetime.now(timezone.utc))
        with session_factory() as check:
            assert LeadStore(check).get_snapshot("s1") is None
