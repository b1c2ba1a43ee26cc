"""
Follow-up recommendation rules
"""

from typing import Any, Optional

from app.services.scoring import LeadTemperature


def recommend_follow_up(score: int, temperature: LeadTemperature, session: Optional[Any]) -> str:
    """Suggest the next sales action for a scored session"""
    if temperature in (LeadTemperature.QUALIFIED, LeadTemperature.HOT):
        email = getattr(session, "email", None) if session is not None else None
        if email:
            return (
                f"High-intent lead ({score}/100). Reach out to {email} "
                "with a personalized call within 24 hours."
            )
        return (
            f"High-intent anonymous visitor ({score}/100). Prioritize email capture "
            "and schedule a demo."
        )

    if temperature == LeadTemperature.WARM:
        return "Moderate engagement. Add to a nurture email sequence and retarget with relevant content."

    return "Low engagement. Review targeting and the opening chapters of the experience."
