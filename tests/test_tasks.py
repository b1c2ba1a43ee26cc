"""
Tests for the Celery scoring task, executed eagerly.
"""
from app.services.lead_scoring_service import LeadScoringService
from app.tasks import scoring_tasks

from conftest import add_event, add_session


def test_compute_lead_scores_task(db, session_factory, monkeypatch):
    add_session(db, "s1", email="ana@example.com")
    add_event(db, "s1", "cta_click")
    monkeypatch.setattr(scoring_tasks, "LeadScoringService",
                        lambda: LeadScoringService(session_factory=session_factory))

    result = scoring_tasks.compute_lead_scores.apply(kwargs={"compute_all": True}).get()

    assert result["success"] is True
    assert result["processed"] == 1
    assert result["results"][0]["session_id"] == "s1"
