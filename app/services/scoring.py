"""
Lead scoring engine
Weighted 0-100 engagement score and lead temperature classification
"""

import enum
import math
from pydantic import BaseModel
from typing import Dict, Union

from app.services.metrics import EngagementMetrics

# Fixed weights, sum to 1.0
SCORE_WEIGHTS = {
    "video": 0.30,
    "chapter": 0.25,
    "cta": 0.20,
    "time": 0.10,
    "profile": 0.15,
}

CTA_POINTS = 25  # 4 CTA interactions saturate
TIME_SATURATION_SECONDS = 300


class LeadTemperature(str, enum.Enum):
    """Lead temperature buckets, coldest first"""
    COLD = "cold"
    WARM = "warm"
    HOT = "hot"
    QUALIFIED = "qualified"


# Lower bound of each bucket, evaluated high to low
TEMPERATURE_THRESHOLDS = (
    (76, LeadTemperature.QUALIFIED),
    (51, LeadTemperature.HOT),
    (26, LeadTemperature.WARM),
)


class SubScores(BaseModel):
    """Normalized [0, 100] components of the engagement score"""
    video: float
    chapter: float
    cta: float
    time: float
    profile: float


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def compute_sub_scores(metrics: EngagementMetrics, total_chapters: int) -> SubScores:
    """Normalize metrics into sub-scores"""
    if total_chapters > 0:
        chapter_score = (metrics.completed_chapters / total_chapters) * 100
    else:
        chapter_score = 0

    return SubScores(
        video=_clamp(metrics.avg_video_watch_percentage),
        chapter=_clamp(chapter_score),
        cta=_clamp(metrics.cta_count * CTA_POINTS),
        time=_clamp((metrics.total_watch_time / TIME_SATURATION_SECONDS) * 100),
        profile=_clamp(metrics.profile_score),
    )


def compute_engagement_score(sub_scores: SubScores) -> int:
    """Combine sub-scores by the fixed weights into an integer 0-100"""
    weighted = sum(getattr(sub_scores, name) * weight for name, weight in SCORE_WEIGHTS.items())
    return max(0, min(100, round_half_up(weighted)))


def classify_temperature(score: int) -> LeadTemperature:
    for threshold, temperature in TEMPERATURE_THRESHOLDS:
        if score >= threshold:
            return temperature
    return LeadTemperature.COLD


def build_breakdown(sub_scores: SubScores, metrics: EngagementMetrics) -> Dict[str, Union[int, float]]:
    """Percentage sub-scores for display alongside the snapshot"""
    return {
        "video_engagement": round_half_up(sub_scores.video),
        "chapter_completion": round_half_up(sub_scores.chapter),
        "cta_interactions": round_half_up(sub_scores.cta),
        "time_investment": round_half_up(sub_scores.time),
        "profile_completeness": round_half_up(sub_scores.profile),
        "total_events": metrics.total_events,
    }
