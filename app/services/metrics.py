"""
Engagement metric extraction
Turns a session's raw events and profile into the intermediate metrics scoring works from
"""

import enum
from pydantic import BaseModel
from typing import Any, Iterable, Optional


class EventType(str, enum.Enum):
    """Engagement event types recognized by the scoring rules"""
    VIDEO_PROGRESS = "video_progress"
    VIDEO_COMPLETE = "video_complete"
    CHAPTER_COMPLETE = "chapter_complete"
    CTA_CLICK = "cta_click"
    BOOK_DEMO = "book_demo"
    REQUEST_TRIAL = "request_trial"
    FEATURE_EXPLORE = "feature_explore"
    INTERACTIVE_ACTION = "interactive_action"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def _missing_(cls, value):
        return cls.UNRECOGNIZED


VIDEO_EVENTS = frozenset({EventType.VIDEO_PROGRESS, EventType.VIDEO_COMPLETE})
CTA_EVENTS = frozenset({EventType.CTA_CLICK, EventType.BOOK_DEMO, EventType.REQUEST_TRIAL})
FEATURE_EVENTS = frozenset({EventType.FEATURE_EXPLORE, EventType.INTERACTIVE_ACTION})

# Points per populated profile field, out of 100
PROFILE_FIELD_POINTS = {
    "email": 25,
    "full_name": 15,
    "company_name": 20,
    "industry": 15,
    "employee_count": 10,
    "job_title": 15,
}


class EngagementMetrics(BaseModel):
    """Intermediate metrics for one session"""
    total_watch_time: float = 0.0
    completed_chapters: int = 0
    cta_count: int = 0
    feature_count: int = 0
    avg_video_watch_percentage: float = 0.0
    profile_score: int = 0
    total_events: int = 0


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def compute_profile_score(session: Optional[Any]) -> int:
    """Sum the fixed points of every populated profile field"""
    if session is None:
        return 0
    return sum(
        points
        for field, points in PROFILE_FIELD_POINTS.items()
        if _is_present(getattr(session, field, None))
    )


def extract_metrics(events: Iterable[Any], session: Optional[Any]) -> EngagementMetrics:
    """
    Extract engagement metrics from a session's events and profile.

    Events are read by attribute (``event_type``, ``chapter_id``,
    ``time_spent_seconds``, ``video_watch_percentage``) so ORM rows and
    plain objects both work. Unrecognized event types only count toward
    watch time and the raw event total.
    """
    total_watch_time = 0.0
    completed_chapter_ids = set()
    cta_count = 0
    feature_count = 0
    video_percentages = []
    total_events = 0

    for event in events:
        total_events += 1
        total_watch_time += event.time_spent_seconds or 0

        event_type = EventType(event.event_type)
        if event_type is EventType.CHAPTER_COMPLETE:
            if event.chapter_id is not None:
                completed_chapter_ids.add(event.chapter_id)
        elif event_type in CTA_EVENTS:
            cta_count += 1
        elif event_type in FEATURE_EVENTS:
            feature_count += 1
        elif event_type in VIDEO_EVENTS:
            video_percentages.append(event.video_watch_percentage or 0)

    avg_video = sum(video_percentages) / len(video_percentages) if video_percentages else 0.0

    return EngagementMetrics(
        total_watch_time=total_watch_time,
        completed_chapters=len(completed_chapter_ids),
        cta_count=cta_count,
        feature_count=feature_count,
        avg_video_watch_percentage=avg_video,
        profile_score=compute_profile_score(session),
        total_events=total_events,
    )
